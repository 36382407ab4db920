"""Example: drive the service layer directly (no Flask).

Controllers are a thin layer; the scheduling rules live in the services.
"""

import importlib
from datetime import timedelta

from config import get_settings_module

from src.review_scheduler.review_scheduler.common.datetime_utils import now_local
from src.review_scheduler.review_scheduler.container import build_container
from src.review_scheduler.review_scheduler.scheduling.calendar_clock import add_skipping_sundays


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    now = now_local()

    print("24h access from now expires at", add_skipping_sundays(now, timedelta(hours=24)))
    for s in container.session_scheduler.list_sessions(now.date()):
        print(s.label, s.faculty_id, sorted(s.student_ids))


if __name__ == "__main__":
    main()
