"""
Single-process startup: wait for the database, migrate, collect static files
and optionally create a demo account with the default dashboard.
"""
import os
import time

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import BaseCommand
from django.db import connections
from django.db.utils import OperationalError


class Command(BaseCommand):
    help = "Run all startup steps (db wait, migrate, collectstatic, demo user) in one process."

    def add_arguments(self, parser):
        parser.add_argument("--no-migrate", action="store_true")
        parser.add_argument("--no-collectstatic", action="store_true")
        parser.add_argument("--no-db-wait", action="store_true")
        parser.add_argument(
            "--demo-user",
            default=os.getenv("LIFEHUB_DEMO_USER", ""),
            help="Create this user (password from LIFEHUB_DEMO_PASSWORD) if it does not exist.",
        )

    def handle(self, *args, **options):
        if not options["no_db_wait"]:
            self._wait_for_db()

        if not options["no_migrate"]:
            self.stdout.write("Running migrations...")
            call_command("migrate", "--noinput", verbosity=1, stdout=self.stdout, stderr=self.stderr)

        if not options["no_collectstatic"]:
            collectstatic = os.getenv("COLLECTSTATIC", "true").strip().lower()
            if collectstatic in ("1", "true", "yes", "on"):
                self.stdout.write("Collecting static files...")
                call_command("collectstatic", "--noinput", verbosity=1, stdout=self.stdout, stderr=self.stderr)

        if options["demo_user"]:
            self._ensure_demo_user(options["demo_user"])

        self.stdout.write(self.style.SUCCESS("Startup complete."))

    def _ensure_demo_user(self, username):
        User = get_user_model()
        if User.objects.filter(username=username).exists():
            self.stdout.write(f"Demo user {username!r} already exists.")
            return
        password = os.getenv("LIFEHUB_DEMO_PASSWORD", "password")
        User.objects.create_user(username=username, email=f"{username}@example.com", password=password)
        self.stdout.write(f"Created demo user {username!r}.")

    def _wait_for_db(self):
        timeout = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
        interval = float(os.getenv("DB_WAIT_INTERVAL", "2"))
        self.stdout.write("Waiting for database...")
        start = time.monotonic()
        while True:
            try:
                connections["default"].cursor().close()
                return
            except OperationalError as exc:
                elapsed = time.monotonic() - start
                if elapsed >= timeout:
                    raise SystemExit(f"Database unavailable after {timeout}s: {exc}")
                time.sleep(interval)
