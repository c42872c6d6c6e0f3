from __future__ import annotations

import logging
import os
import threading
from typing import Any, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

from .bridge import CalendarBridge
from .calendar import EventCalendar
from .config import load_config
from .controller import LiveEventController
from .publish import ChannelPublisher

CONFIG_PATH_DEFAULT = "/etc/livecal/config.yaml"


def _print_channel(channel: str, value: Any) -> None:
    print(f"{channel} = {value if value is not None else 'UNDEF'}")


def run(config_path: str, once: bool = False, stop: Optional[threading.Event] = None) -> LiveEventController:
    cfg = load_config(config_path)
    tz = ZoneInfo(cfg.timezone)

    publisher = ChannelPublisher(tz=tz, on_change=None if once else _print_channel)
    bridge = CalendarBridge(EventCalendar(cfg.calendar.events))
    controller = LiveEventController(bridge, publisher, cfg.live_event)
    bridge.add_listener(controller)
    controller.initialize()

    if once:
        for channel, value in publisher.channels.items():
            _print_channel(channel, value)
        status = f"status = {publisher.status.value} ({publisher.status_detail.value})"
        if publisher.status_message:
            status += f": {publisher.status_message}"
        print(status)
        pending = controller.pending_wakeup
        print(f"next wake-up = {pending.target.astimezone(tz).isoformat() if pending else 'none'}")
        controller.dispose()
        return controller

    stop = stop or threading.Event()
    print(f"Tracking {len(cfg.calendar.events)} events; press Ctrl-C to stop")
    try:
        stop.wait()
    except KeyboardInterrupt:
        pass
    finally:
        bridge.remove_listener(controller)
        controller.dispose()
    return controller


def main():
    import argparse

    load_dotenv()
    ap = argparse.ArgumentParser(description="Track the current and next calendar event")
    ap.add_argument("--config", default=os.environ.get("LIVECAL_CONFIG", CONFIG_PATH_DEFAULT))
    ap.add_argument("--once", action="store_true", help="run a single update and exit")
    ap.add_argument("--log-level", default=os.environ.get("LIVECAL_LOG_LEVEL", "INFO"))
    args = ap.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run(config_path=args.config, once=args.once)


if __name__ == "__main__":
    main()
