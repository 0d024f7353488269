"""Sub-command groups of the quizsage CLI.

* :mod:`~quizsage.commands.config` -- view and edit the persisted
  connection settings.
"""
