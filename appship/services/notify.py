"""Telegram status notifications.

Notification is a best-effort side channel: it is skipped when
``telegram_bot.env`` is absent, and every problem after that (incomplete
file, transport failure, Telegram error) becomes a ``NotificationWarning``
that is printed and returned, never raised.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from appship.core.errors import NotificationWarning
from appship.core.models import NotificationConfig
from appship.core.result import Err, Ok, Result
from appship.net.http import HttpClient
from appship.output.console import ConsoleProtocol

__all__ = [
    "NOTIFICATION_FILE",
    "TELEGRAM_API_URL",
    "Notifier",
    "PipelineFailed",
    "PipelineSucceeded",
    "format_message",
    "load_notification_config",
    "parse_env",
]

NOTIFICATION_FILE = "telegram_bot.env"
TELEGRAM_API_URL = "https://api.telegram.org"

_REQUIRED_KEYS = ("TELEGRAM_BOT_TOKEN", "TELEGRAM_CHAT_ID")


@dataclass(frozen=True, slots=True)
class PipelineFailed:
    platform: str
    version: str
    message: str


@dataclass(frozen=True, slots=True)
class PipelineSucceeded:
    platform: str
    version: str
    app_name: str
    install_url: str


NotificationEvent = PipelineFailed | PipelineSucceeded


def parse_env(text: str) -> dict[str, str]:
    """Parse KEY=VALUE lines; blank lines, # comments and lines without '=' are skipped."""
    env: dict[str, str] = {}
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = stripped.partition("=")
        if not sep:
            continue
        env[key.strip()] = value.strip()
    return env


def load_notification_config(
    app_dir: Path,
) -> Result[NotificationConfig | None, NotificationWarning]:
    """Load the Telegram settings; Ok(None) means notifications are not configured."""
    path = app_dir / NOTIFICATION_FILE
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Ok(None)
    except (OSError, UnicodeDecodeError) as e:
        return Err(NotificationWarning(f"cannot read {NOTIFICATION_FILE}: {e}"))

    env = parse_env(text)
    missing = [key for key in _REQUIRED_KEYS if not env.get(key)]
    if missing:
        return Err(
            NotificationWarning(
                f"{NOTIFICATION_FILE} exists but is missing required fields: {', '.join(missing)}"
            )
        )
    return Ok(
        NotificationConfig(
            bot_token=env["TELEGRAM_BOT_TOKEN"],
            chat_id=env["TELEGRAM_CHAT_ID"],
            topic_id=env.get("TELEGRAM_TOPIC_ID") or None,
        )
    )


def format_message(event: NotificationEvent) -> str:
    """Render an event as Telegram HTML."""
    e = html.escape
    match event:
        case PipelineSucceeded():
            return (
                "✅ <b>Build &amp; Upload Completed Successfully</b>\n\n"
                f"App: {e(event.app_name)}\n"
                f"Platform: {e(event.platform)}\n"
                f"Version: {e(event.version)}\n\n"
                "📱 <b>Install URL:</b>\n"
                f"{e(event.install_url)}\n"
            )
        case PipelineFailed():
            return (
                "❌ <b>Build Failed</b>\n\n"
                f"Platform: {e(event.platform)}\n"
                f"Version: {e(event.version)}\n"
                f"Error: {e(event.message)}\n"
            )


class Notifier:
    def __init__(self, *, app_dir: Path, http: HttpClient, console: ConsoleProtocol) -> None:
        self._app_dir = app_dir
        self._http = http
        self._console = console

    def send(self, config: NotificationConfig, text: str) -> NotificationWarning | None:
        """POST one message to the configured chat (and topic, if any)."""
        body: dict[str, object] = {
            "chat_id": config.chat_id,
            "text": text,
            "parse_mode": "HTML",
        }
        if config.topic_id:
            body["message_thread_id"] = config.topic_id

        url = f"{TELEGRAM_API_URL}/bot{config.bot_token}/sendMessage"
        result = self._http.post_json(url, body)
        if isinstance(result, Err):
            return NotificationWarning(f"error sending Telegram notification: {result.error}")

        response = result.value
        if response.status != 200:
            return NotificationWarning(
                f"failed to send Telegram notification: HTTP {response.status} - "
                f"{response.body.strip()[:200]} (chat {config.chat_id}, topic {config.topic_id})"
            )
        return None

    def notify(self, event: NotificationEvent) -> NotificationWarning | None:
        """Send a status message if notifications are configured.

        Returns the warning that was printed, if any.
        """
        loaded = load_notification_config(self._app_dir)
        if isinstance(loaded, Err):
            self._console.warning(loaded.error.message)
            return loaded.error
        config = loaded.value
        if config is None:
            return None

        warning = self.send(config, format_message(event))
        if warning is not None:
            self._console.warning(warning.message)
            return warning
        self._console.success("Telegram notification sent")
        return None

    def send_test(self, config: NotificationConfig) -> NotificationWarning | None:
        """Send a test message to check the bot configuration."""
        text = (
            "🧪 <b>Telegram Bot Test</b>\n\n"
            "This is a test message from appship.\n\n"
            f"Timestamp: {datetime.now().isoformat(timespec='seconds')}\n"
            f"App Directory: {html.escape(str(self._app_dir))}\n\n"
            "If you received this message, your Telegram bot configuration is working. ✅\n"
        )
        return self.send(config, text)
