from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

import logging

logger = logging.getLogger("booknest")

User = get_user_model()


class Command(BaseCommand):
    help = "Create the default administrator, or reset its password and flags if it already exists"

    def add_arguments(self, parser):
        parser.add_argument("--email", default=settings.BOOKNEST_ADMIN_EMAIL)
        parser.add_argument("--password", default=settings.BOOKNEST_ADMIN_PASSWORD)

    def handle(self, *args, **options):
        email = options["email"]

        user = User.objects.filter(email__iexact=email).first()
        created = user is None

        if created:
            user = User(username=email, email=email, first_name="Admin User")

        user.is_staff = True
        user.is_superuser = True
        user.is_active = True
        user.set_password(options["password"])
        user.save()

        if created:
            logger.info(f"Default admin account created ({email})")
            self.stdout.write(self.style.SUCCESS(f"Created admin {email}"))
        else:
            logger.info(f"Default admin account updated ({email})")
            self.stdout.write(self.style.SUCCESS(f"Updated admin {email}"))
