"""NoteCanvas launcher.

Loads settings and logging, then runs preflight checks before importing
GTK-related modules, which gives clearer error messages on new systems.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def main() -> int:
    from notecanvas.config import configure_logging, load_settings
    from notecanvas.preflight import run_preflight_or_die

    settings = load_settings()
    configure_logging(settings.log_level)

    run_preflight_or_die(require_display=True, check_deps=True)

    from notecanvas.app import main as app_main

    logger.debug("Launching with settings %s", settings)
    return int(app_main(settings))


if __name__ == "__main__":
    raise SystemExit(main())
