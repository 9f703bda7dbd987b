"""
Task subsystem.

Components:
- lifecycle.py: save/delete tasks, company and employee removal with cascades
- query.py: visibility, filters, sorting, dashboard stats and view projections
- reminders.py: polling scheduler that fires due reminders through the notification center
"""
