import json
import os
import uuid

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from learners.models import User
from srs.data.models import CatalogCard


class Command(BaseCommand):
    help = "Replace reviewers and the flashcard catalog with the contents of a JSON file"

    def add_arguments(self, parser):
        parser.add_argument(
            "--file", default="MOCK_DATA.json", help="JSON file name to load data from"
        )

    def handle(self, *args, **options):
        file_name = options.get("file", "MOCK_DATA.json")
        json_file_path = file_name
        if not os.path.isabs(file_name):
            json_file_path = os.path.join(os.path.dirname(__file__), file_name)

        try:
            with open(json_file_path) as json_file:
                data = json.load(json_file)
        except (OSError, ValueError) as e:
            raise CommandError(f"Error loading data from {file_name}: {e}") from e

        with transaction.atomic():
            User.objects.all().delete()
            CatalogCard.objects.all().delete()
            self.stdout.write(self.style.SUCCESS("All existing reviewer and catalog data has been deleted"))

            for entry in data.get("reviewers", []):
                create = User.objects.create_superuser if entry.get("superuser") else User.objects.create_user
                user = create(
                    entry["username"],
                    email=entry.get("email", f"{entry['username']}@example.com"),
                    password=entry.get("password", "testpassword"),
                )
                if entry.get("reviewer_id"):
                    user.reviewer_id = uuid.UUID(entry["reviewer_id"])
                    user.save(update_fields=["reviewer_id"])

            for position, entry in enumerate(data.get("cards", [])):
                CatalogCard.objects.create(
                    card_id=uuid.UUID(entry["card_id"]),
                    position=entry.get("position", position),
                    deck=entry.get("deck", ""),
                )

        self.stdout.write(
            self.style.SUCCESS(
                f"Loaded {len(data.get('reviewers', []))} reviewers and "
                f"{len(data.get('cards', []))} catalog cards from {file_name}"
            )
        )
