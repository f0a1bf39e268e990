"""Shift Timesheet package.

Feature modules (shifts, holidays, employees, timesheets, ...) keep the
domain rules in pure services; Flask controllers and MySQL repositories are
thin adapters around them.
"""
