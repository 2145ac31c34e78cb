import os

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from blood.services.stock import ensure_stock_rows


class Command(BaseCommand):
    help = "Provision the blood bank admin (superuser) account from environment variables."

    def handle(self, *args, **options):
        email = (os.getenv("ADMIN_EMAIL") or "").strip().lower()
        username = (os.getenv("ADMIN_USERNAME") or email).strip()
        password = os.getenv("ADMIN_PASSWORD") or ""
        reset_password = (os.getenv("ADMIN_RESET_PASSWORD") or "false").lower() == "true"

        if not username or not password:
            self.stdout.write(
                "Skipping admin provisioning (ADMIN_USERNAME or ADMIN_EMAIL, and ADMIN_PASSWORD must be set)."
            )
            return

        User = get_user_model()

        with transaction.atomic():
            user, created = User.objects.get_or_create(
                username=username,
                defaults={"email": email, "is_staff": True, "is_superuser": True},
            )

            if created:
                user.set_password(password)
                user.save()
                self.stdout.write(f"Created admin user: {username}")
            else:
                changed = []
                if email and user.email != email:
                    user.email = email
                    changed.append("email")
                if not (user.is_staff and user.is_superuser):
                    user.is_staff = user.is_superuser = True
                    changed.append("role")
                if reset_password:
                    user.set_password(password)
                    changed.append("password")

                if changed:
                    user.save()
                    self.stdout.write(f"Updated admin user {username}: {', '.join(changed)}")
                else:
                    self.stdout.write(f"Admin user already present: {username}")

        created_rows = ensure_stock_rows()
        if created_rows:
            self.stdout.write(f"Created {created_rows} missing stock rows.")
