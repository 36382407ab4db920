"""Review scheduling package.

Organized by feature modules (timers, teams, assignments, sessions, absentees)
with a thin Flask controller layer over service/repository layers.
"""
