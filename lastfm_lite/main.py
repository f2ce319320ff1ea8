import logging
import time

from lastfm_lite.bluos import BluOSClient
from lastfm_lite.config import Settings
from lastfm_lite.engine import ScrobbleEngine
from lastfm_lite.events import PushStateChannel
from lastfm_lite.notifier import Alerts, from_env as webhook_notifier_from_env
from lastfm_lite.notifier_gotify import from_env as gotify_notifier_from_env
from lastfm_lite.reporter import LastFMReporter

log = logging.getLogger("lastfm-lite")


def configure_logging(settings: Settings):
    level = logging.DEBUG if settings.debug_logging else getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,  # ensure our config is used even if libs pre-configure logging
    )
    # pylast and urllib3 are chatty at DEBUG
    logging.getLogger("pylast").setLevel(max(level, logging.INFO))
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))


def poll(blu: BluOSClient, channel: PushStateChannel, interval: int):
    """Publish every /Status answer as a pushState; long-polls once an etag is known."""
    etag = None
    while True:
        status = blu.get_status(etag)
        if status is None:
            log.info("BluOS status unavailable; retrying in %ss", interval)
            etag = None
            time.sleep(interval)
            continue
        etag = status.etag
        log.debug("Parsed: state=%s service=%s artist=%s title=%s album=%s duration=%s",
                  status.state, status.service, status.artist, status.title, status.album, status.duration)
        channel.emit(status.to_player_state())
        if not etag:
            time.sleep(interval)


def main():
    settings = Settings.from_env()
    configure_logging(settings)

    for name in settings.missing_credentials():
        log.warning('configuration error; "%s" is not set. Nothing will be sent to Last.fm.', name)

    alerts = Alerts(webhook_notifier_from_env(), gotify_notifier_from_env())
    reporter = LastFMReporter(settings, alerts=alerts)
    engine = ScrobbleEngine(settings, reporter)
    channel = PushStateChannel()
    blu = BluOSClient(settings.bluos_host, settings.bluos_port, long_poll=settings.long_poll_timeout)

    log.info("Starting BluOS → Last.fm scrobbler for %s:%s", settings.bluos_host, settings.bluos_port)
    alerts.send("INFO", "Scrobbler started", f"Listening to {settings.bluos_host}:{settings.bluos_port}.")
    engine.start(channel)
    try:
        poll(blu, channel, settings.poll_interval)
    except KeyboardInterrupt:
        log.info("Shutting down…")
    finally:
        engine.stop()
        reporter.shutdown(wait=False)


if __name__ == "__main__":
    main()
