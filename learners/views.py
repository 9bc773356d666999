from django.core.management import CommandError, call_command
from rest_framework import status, viewsets
from rest_framework.decorators import action, api_view
from rest_framework.response import Response
import structlog

from srs.domain.errors import StoreUnavailableError
from srs.services.queue import due_counts
from srs.utils.time import SystemClock

logger = structlog.get_logger()


@api_view(["POST"])
def initialize_data(request):
    """Reload reviewers and the card catalog from a bundled (or absolute-path) JSON file."""
    file_name = request.data.get("file", "MOCK_DATA.json")
    logger.info("init_data_requested", file=file_name)
    try:
        call_command("init_data", file=file_name)
    except CommandError as exc:
        logger.warning("init_data_rejected", file=file_name, error=str(exc))
        return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(
        {"message": f"Data initialized successfully from {file_name}"},
        status=status.HTTP_200_OK,
    )


class UserViewSet(viewsets.ViewSet):
    clock = SystemClock()

    @action(detail=False, methods=["get"])
    def me(self, request):
        """
        The logged-in reviewer: username, reviewer id and how many cards are
        waiting right now (daily caps not applied).
        """
        if not request.user.is_authenticated:
            return Response(
                {"error": "User not authenticated"}, status=status.HTTP_401_UNAUTHORIZED
            )

        reviewer_id = request.user.reviewer_id
        try:
            waiting = due_counts(reviewer_id, self.clock.now())
        except StoreUnavailableError as exc:
            logger.warning("me_due_counts_failed", reviewer_id=str(reviewer_id), error=str(exc))
            return Response({"error": str(exc)}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response(
            {
                "username": request.user.username,
                "reviewer_id": str(reviewer_id),
                "waiting": waiting,
            },
            status=status.HTTP_200_OK,
        )
