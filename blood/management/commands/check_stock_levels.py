from django.core.management.base import BaseCommand

from blood.services import notifications
from blood.services import stock as stock_service


class Command(BaseCommand):
    help = "Print the stock ledger and email admins about Critical or Low blood groups."

    def add_arguments(self, parser):
        parser.add_argument(
            "--no-email",
            action="store_true",
            help="Only print the ledger; do not send the alert email.",
        )

    def handle(self, *args, **options):
        for stock in stock_service.list_stocks():
            line = f"{stock.bloodgroup:>4}  {stock.unit:>5} bag(s)  {stock.status}"
            if stock.status == "Safe":
                self.stdout.write(line)
            else:
                self.stdout.write(self.style.WARNING(line))

        if options["no_email"]:
            return

        result = notifications.send_stock_alert()
        if result["flagged"]:
            self.stdout.write(
                self.style.WARNING(
                    f"Alerted admins about {', '.join(result['flagged'])} ({result['sent']} email(s) sent)."
                )
            )
        else:
            self.stdout.write(self.style.SUCCESS("All blood groups are above the low-stock threshold."))
