from django.contrib.auth import login
from django.http import HttpResponse

from learners.models import User

import structlog

logger = structlog.get_logger()


# Reviewers are identified by a header instead of a login flow
class MockLoginUserMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        username = request.headers.get("X-User-NAME")
        if username:
            try:
                user = User.objects.get(username=username)
            except User.DoesNotExist:
                logger.info("mock_login_rejected", username=username)
                return HttpResponse(
                    "User not found or invalid credentials.", status=401
                )
            logger.info("mock_login", username=username, reviewer_id=str(user.reviewer_id))
            login(request, user, backend="django.contrib.auth.backends.ModelBackend")
        response = self.get_response(request)
        return response
