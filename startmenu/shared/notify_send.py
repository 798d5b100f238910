from typing import Any

import structlog
from gi.repository import Gio, GLib  # pyright: ignore


class Notifier:
    """Desktop notifications over the org.freedesktop.Notifications D-Bus interface."""

    def __init__(self, logger: Any = None, app_name: str = "Start Menu"):
        self.logger = logger or structlog.get_logger(__name__)
        self.app_name = app_name

    def _on_notification_sent(self, proxy, result, *args):
        try:
            proxy.call_finish(result)
        except GLib.Error as e:
            self.logger.error(f"Error sending notification: {e}")

    def _on_bus_acquired(self, source_object, result, user_data):
        title, message, icon, expire_timeout = user_data
        try:
            connection = Gio.bus_get_finish(result)
            proxy = Gio.DBusProxy.new_sync(
                connection,
                Gio.DBusProxyFlags.NONE,
                None,
                "org.freedesktop.Notifications",
                "/org/freedesktop/Notifications",
                "org.freedesktop.Notifications",
                None,
            )
            proxy.call(
                "Notify",
                GLib.Variant(
                    "(susssasa{sv}i)",
                    (
                        self.app_name,
                        0,
                        icon,
                        title,
                        message,
                        [],
                        {},
                        expire_timeout,
                    ),
                ),
                Gio.DBusCallFlags.NONE,
                -1,
                None,
                self._on_notification_sent,
            )
        except GLib.Error as e:
            self.logger.error(f"Error preparing notification: {e}")

    def notify_send(
        self,
        title: str,
        message: str,
        icon: str = "dialog-warning",
        expire_timeout: int = 5000,
        **kwargs,
    ) -> None:
        """
        Sends a desktop notification without blocking the main loop.
        Args:
            title (str): The summary text.
            message (str): The body text.
            icon (str): Icon name to display.
            expire_timeout (int): Notification timeout in milliseconds.
        """
        Gio.bus_get(
            Gio.BusType.SESSION,
            None,
            self._on_bus_acquired,
            (title, message, icon, expire_timeout),
        )
