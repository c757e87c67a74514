"""
Transition notifications for agentboard.

Only three transitions are worth interrupting someone for:
- an item reached pending_review (ready for review)
- an item reached done (needs acceptance)
- an item went back to draft with a rejection comment

Sinks:
- DesktopNotifier: notify-send (freedesktop compliant; mako, dunst, GNOME, KDE)
- TelegramNotifier: Bot API sendMessage, per-project bot token and chat id

Notifiers never raise. The executor treats them as fire-and-forget.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass

import requests

from agentboard.lib.models import Item
from agentboard.store.base import ItemStore, NotFound
from agentboard.workflow.states import ItemStatus

logger = logging.getLogger(__name__)


VALID_URGENCIES = ("low", "normal", "critical")
MAX_NOTIFICATION_LENGTH = 200
TELEGRAM_API_URL = "https://api.telegram.org"
TELEGRAM_TIMEOUT_SECONDS = 10

_MARKDOWN_SPECIAL = re.compile(r'([_*\[\]()~`>#+\-=|{}.!\\])')


@dataclass
class TransitionMessage:
    headline: str
    title: str
    detail: str = ""
    urgency: str = "normal"


def _truncate(text: str, limit: int = MAX_NOTIFICATION_LENGTH) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def build_message(
    item: Item,
    new_status: ItemStatus,
    comment: str | None = None,
    latest_decision: str | None = None,
) -> TransitionMessage | None:
    """Describe a transition, or None if it isn't worth a notification."""
    if new_status == ItemStatus.PENDING_REVIEW:
        return TransitionMessage(
            "New item ready for review",
            item.title,
            f"[{item.priority.value}]",
        )
    if new_status == ItemStatus.DONE:
        detail = f"Decision: {latest_decision}" if latest_decision else ""
        return TransitionMessage("Item completed, needs acceptance", item.title, detail, "low")
    if new_status == ItemStatus.DRAFT and comment:
        return TransitionMessage("Item rejected", item.title, f"Reason: {comment}", "critical")
    return None


def escape_markdown(text: str) -> str:
    """Escape Telegram MarkdownV2 special characters."""
    return _MARKDOWN_SPECIAL.sub(r'\\\1', text)


def _latest_decision(store: ItemStore | None, item: Item, new_status: ItemStatus) -> str | None:
    if store is None or new_status != ItemStatus.DONE:
        return None
    logs = store.list_decision_logs(item.id)
    return logs[-1].decision if logs else None


def send_desktop(title: str, message: str, urgency: str = "normal") -> None:
    """
    Send desktop notification.

    Args:
        title: Notification title
        message: Notification body
        urgency: One of "low", "normal", "critical"
    """
    if urgency not in VALID_URGENCIES:
        logger.warning(f"Invalid urgency '{urgency}', using 'normal'")
        urgency = "normal"

    if not shutil.which("notify-send"):
        logger.debug("notify-send not found, skipping notification")
        return

    try:
        result = subprocess.run([
            "notify-send",
            "--urgency", urgency,
            "--app-name", "agentboard",
            title,
            message
        ], capture_output=True, text=True, timeout=5)

        if result.returncode != 0:
            logger.warning(f"notify-send failed (exit {result.returncode}): {result.stderr}")
    except subprocess.TimeoutExpired:
        logger.warning("notify-send timed out")
    except OSError as e:
        logger.warning(f"Failed to run notify-send: {e}")


class NullNotifier:
    def notify(self, item: Item, new_status: ItemStatus, comment: str | None = None) -> None:
        pass


class DesktopNotifier:
    def __init__(self, store: ItemStore | None = None):
        self.store = store

    def notify(self, item: Item, new_status: ItemStatus, comment: str | None = None) -> None:
        try:
            msg = build_message(item, new_status, comment, _latest_decision(self.store, item, new_status))
        except Exception as e:
            logger.warning(f"[NOTIFY] Could not build message for {item.id}: {e}")
            return
        if msg is None:
            return

        body = msg.title if not msg.detail else f"{msg.title}\n{msg.detail}"
        send_desktop(f"agentboard: {msg.headline}", _truncate(body), msg.urgency)


class TelegramNotifier:
    """Posts to the chat configured on the item's project.

    Projects without a bot token or chat id are silently skipped.
    """

    def __init__(self, store: ItemStore, session: requests.Session | None = None,
                 timeout: float = TELEGRAM_TIMEOUT_SECONDS):
        self.store = store
        self.session = session or requests.Session()
        self.timeout = timeout

    def format(self, msg: TransitionMessage) -> str:
        text = f"*{escape_markdown(msg.headline)}*\n\n*{escape_markdown(msg.title)}*"
        if msg.detail:
            text += f"\n{escape_markdown(msg.detail)}"
        return text

    def notify(self, item: Item, new_status: ItemStatus, comment: str | None = None) -> None:
        try:
            project = self.store.get_project(item.project_id)
        except NotFound:
            logger.debug(f"[NOTIFY] Project {item.project_id} not found, skipping")
            return
        if not project.telegram_bot_token or not project.telegram_chat_id:
            return

        try:
            msg = build_message(item, new_status, comment, _latest_decision(self.store, item, new_status))
            if msg is None:
                return

            response = self.session.post(
                f"{TELEGRAM_API_URL}/bot{project.telegram_bot_token}/sendMessage",
                json={
                    "chat_id": project.telegram_chat_id,
                    "text": self.format(msg),
                    "parse_mode": "MarkdownV2",
                },
                timeout=self.timeout,
            )
            if not response.ok:
                logger.warning(
                    f"[NOTIFY] Telegram returned {response.status_code}: {_truncate(response.text)}"
                )
        except requests.RequestException as e:
            logger.warning(f"[NOTIFY] Telegram notification failed: {e}")
        except Exception as e:
            logger.warning(f"[NOTIFY] Telegram notification failed for {item.id}: {e}")

    def close(self) -> None:
        self.session.close()


def build_notifier(kind: str, store: ItemStore):
    """Notifier for the `notifier` setting in agentboard.yaml."""
    if kind == "telegram":
        return TelegramNotifier(store)
    if kind == "desktop":
        return DesktopNotifier(store)
    if kind == "none":
        return NullNotifier()
    raise ValueError(f"Unknown notifier '{kind}'")
