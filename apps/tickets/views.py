"""
Webhook views for the ticket bridge.

Every response is a single plain-text line plus an HTTP status.
"""

import json
import logging

from django.http import HttpResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from apps.tickets.conf import BridgeConfig
from apps.tickets.escalation import EscalationTrigger
from apps.tickets.exceptions import BridgeError
from apps.tickets.services import EventIngestService

logger = logging.getLogger(__name__)


def text_response(message: str, status: int = 200) -> HttpResponse:
    return HttpResponse(message, status=status, content_type="text/plain; charset=utf-8")


class SharedTokenMixin:
    """
    Rejects requests whose ``?token=`` does not match a shared secret.

    The configuration is read once per request into ``self.config``. The check
    is skipped when the ``BridgeConfig`` field named by ``token_field`` is empty.
    """

    token_field = ""

    def dispatch(self, request, *args, **kwargs):
        self.config = BridgeConfig.from_settings()
        expected = getattr(self.config, self.token_field, "") if self.token_field else ""
        if expected and request.GET.get("token") != expected:
            logger.warning("Rejected %s: bad shared token", request.path)
            return text_response("unauthorized", status=401)
        return super().dispatch(request, *args, **kwargs)

    def http_method_not_allowed(self, request, *args, **kwargs):
        response = text_response("Method not allowed", status=405)
        response["Allow"] = ", ".join(m.upper() for m in self._allowed_methods())
        return response


class BridgeWebhookView(SharedTokenMixin, View):
    """Parses the JSON body, runs a service and maps its errors to statuses."""

    def build_service(self, config: BridgeConfig):
        raise NotImplementedError

    def post(self, request):
        try:
            try:
                payload = json.loads(request.body or b"{}")
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning("Invalid JSON payload: %s", e)
                return text_response("Invalid JSON payload", status=400)
            if not isinstance(payload, dict):
                return text_response("Payload must be a JSON object", status=400)

            result = self.build_service(self.config).process(payload)
            return text_response(result.message, status=result.status)

        except BridgeError as e:
            logger.error("%s: %s", type(e).__name__, e)
            return text_response(str(e), status=e.status_code)
        except Exception:
            logger.exception("Unexpected error processing webhook")
            return text_response("Internal error", status=500)


@method_decorator(csrf_exempt, name="dispatch")
class SentryWebhookView(BridgeWebhookView):
    """
    Monitoring event intake.

    POST /webhooks/sentry/?token=...
    """

    token_field = "sentry_token"

    def build_service(self, config: BridgeConfig):
        return EventIngestService(config=config)

    def get(self, request):
        return text_response("Sentry webhook endpoint is running")


@method_decorator(csrf_exempt, name="dispatch")
class ClickUpWebhookView(BridgeWebhookView):
    """
    Triage-store change notifications (escalation trigger).

    POST /webhooks/clickup/?token=...
    """

    token_field = "clickup_webhook_token"

    def build_service(self, config: BridgeConfig):
        return EscalationTrigger(config=config)


class HealthView(View):
    """GET /health/"""

    def get(self, request):
        return text_response("ok")
