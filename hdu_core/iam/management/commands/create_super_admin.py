# backend/hdu_core/iam/management/commands/create_super_admin.py

from django.core.management.base import BaseCommand, CommandError
from rest_framework.exceptions import APIException

from hdu_core.iam.models import StaffRole, UserProfile
from hdu_core.iam.services import AccountService


class Command(BaseCommand):
    help = "Create an approved Super Admin account (idempotent on username)."

    def add_arguments(self, parser):
        parser.add_argument("--username", required=True)
        parser.add_argument("--email", required=True)
        parser.add_argument("--password", required=True)
        parser.add_argument("--name", default="", help="Name with initials")

    def handle(self, *args, **options):
        username = options["username"]
        if UserProfile.objects.filter(user__username=username).exists():
            self.stdout.write(self.style.WARNING(f"User {username} already exists; nothing to do."))
            return

        try:
            AccountService.register(
                username=username,
                email=options["email"],
                password=options["password"],
                role=StaffRole.SUPER_ADMIN,
                name_with_initials=options["name"],
            )
        except APIException as exc:
            raise CommandError(str(exc.detail)) from exc

        self.stdout.write(self.style.SUCCESS(f"Super Admin {username} created."))
