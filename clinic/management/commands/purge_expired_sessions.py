# clinic/management/commands/purge_expired_sessions.py
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db.models import Q
from django.utils import timezone

from clinic.models import UserSession


class Command(BaseCommand):
    help = "Delete sessions that expired or were revoked more than --days ago."

    def add_arguments(self, parser):
        parser.add_argument("--days", type=int, default=7, help="Keep dead sessions this many days (default 7).")
        parser.add_argument("--dry-run", action="store_true", help="Only report how many rows would go.")

    def handle(self, *args, **opts):
        if opts["days"] < 0:
            self.stderr.write(self.style.ERROR("--days must be >= 0"))
            return
        cutoff = timezone.now() - timedelta(days=opts["days"])
        qs = UserSession.objects.filter(Q(expires_at__lt=cutoff) | Q(revoked_at__lt=cutoff))
        if opts["dry_run"]:
            self.stdout.write(f"would delete {qs.count()} sessions older than {cutoff:%Y-%m-%d %H:%M}")
            return
        deleted, _ = qs.delete()
        self.stdout.write(self.style.SUCCESS(f"deleted {deleted} sessions"))
