"""
Guardian System - Main Entry Point
Runs the monitoring session for one subject from a terminal:
  1. Load configuration (.env + GUARDIAN_* variables + CLI flags)
  2. Connect to the history database
  3. Pick the emergency notification channel
  4. Start the monitoring pipeline (poll / log timers)
  5. Read user actions from stdin: calibrate, ok, help, status, quit
  6. Stop the pipeline and close the database
"""

import os
import sys
import signal
import logging
import argparse

from dotenv import load_dotenv

from guardian_system import MonitoringPipeline, SubjectProfile
from guardian_system.alerts import LogNotifier, TelegramNotifier, WebhookNotifier
from guardian_system.database import get_db_connection
from guardian_system.history import HistoryStore, SQLHistoryBackend
from guardian_system.sensors.wearable import WearableConfig

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)
logger = logging.getLogger('guardian')

COMMANDS = {
    'c': 'start calibration',
    'ok': "I'm fine (dismiss fall prompt)",
    'help': 'send help (notify emergency contact)',
    's': 'show status',
    'h': 'show history',
    'q': 'quit',
}


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Guardian wearable monitoring session")
    parser.add_argument('--subject', default=os.getenv('GUARDIAN_SUBJECT_ID'),
                        help="Subject (national) ID to monitor")
    parser.add_argument('--language', default=os.getenv('GUARDIAN_LANGUAGE', 'en'), choices=['en', 'ar'])
    parser.add_argument('--endpoint', help="Wearable URL (overrides GUARDIAN_ENDPOINT)")
    parser.add_argument('--offline', action='store_true', help="No device, synthetic readings only")
    parser.add_argument('--db-url', help="SQLAlchemy URL for the history log")
    parser.add_argument('--verbose', action='store_true')
    return parser.parse_args(argv)


def build_notifier():
    """Telegram if a bot is configured, else a webhook, else log only."""
    token = os.getenv('GUARDIAN_TELEGRAM_TOKEN')
    chat_id = os.getenv('GUARDIAN_TELEGRAM_CHAT_ID')
    webhook = os.getenv('GUARDIAN_WEBHOOK_URL')

    if token and chat_id:
        logger.info("Emergency channel: Telegram")
        return TelegramNotifier(bot_token=token, chat_id=chat_id)
    if webhook:
        logger.info("Emergency channel: webhook")
        return WebhookNotifier(webhook)

    logger.warning("⚠ No emergency channel configured, alerts will only be logged")
    return LogNotifier()


def build_config(args, environ=None):
    """GUARDIAN_* settings, with --offline / --endpoint applied on top."""
    config = WearableConfig.from_env(environ)
    if args.offline:
        config.endpoint = None
        config.mode = 'offline'
    elif args.endpoint:
        config.endpoint = args.endpoint
        config.mode = 'session'
    return config


def print_reading(reading):
    print(
        f"  ♥ {reading.bpm:>3} bpm   SpO2 {reading.spo2:>3}%   "
        f"resp {reading.res_rate:>2}/min   {reading.activity}"
    )


def print_prompt(prompt):
    print()
    print("=" * 50)
    print(f"  {prompt.title}")
    print(f"  {prompt.body}")
    print(f"  [ok]   {prompt.confirm_label}")
    print(f"  [help] {prompt.help_label}")
    print("=" * 50)


def print_history(pipeline):
    logs = pipeline.history.read(pipeline.session.subject_id)
    if not logs:
        print("  No history yet")
        return
    for entry in logs:
        print(f"  {entry.observed_at:%Y-%m-%d %H:%M:%S}  {entry.bpm} BPM  {entry.spo2}%")


def main(argv=None):
    load_dotenv()
    args = parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.subject:
        print("Usage: run.py --subject <national id>  (or set GUARDIAN_SUBJECT_ID)")
        sys.exit(1)

    print()
    print("=" * 50)
    print("  Guardian — Wearable Monitoring")
    print("=" * 50)

    config = build_config(args)

    try:
        engine, session_factory = get_db_connection(args.db_url)
    except Exception as e:
        print(f"\n✗ Could not open history database: {e}")
        sys.exit(1)

    profile = SubjectProfile(subject_id=args.subject, language=args.language)
    history = HistoryStore(SQLHistoryBackend(session_factory), capacity=config.history_capacity)

    pipeline = MonitoringPipeline(
        profile=profile,
        config=config,
        history=history,
        notifier=build_notifier(),
        on_reading=print_reading,
        on_calibrating=lambda active: print("  Calibrating..." if active else "  Calibration done"),
        on_baseline=lambda b: print(f"  Baseline: {b.avg_bpm} bpm / {b.avg_spo2}%"),
        on_prompt=print_prompt,
        on_escalation=lambda outcome: print(f"  {outcome.feedback}"),
    )

    def shutdown(signum, frame):
        logger.info("Shutdown signal received — stopping pipeline...")
        pipeline.stop()
        engine.dispose()
        sys.exit(0)

    signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)

    pipeline.start()
    print("  Commands: " + ", ".join(f"{k} = {v}" for k, v in COMMANDS.items()))

    try:
        for line in sys.stdin:
            command = line.strip().lower()
            if command == 'q':
                break
            elif command == 'c':
                if not pipeline.start_calibration():
                    print("  Calibration already running")
            elif command == 'ok':
                if pipeline.confirm_okay() is None:
                    print("  No fall alert pending")
            elif command == 'help':
                if pipeline.request_help() is None:
                    print("  No fall alert pending")
            elif command == 's':
                status = pipeline.get_status()
                print(f"  {status['readings']} readings | alert: {status['alert']['state']} | "
                      f"calibrating: {status['calibrating']} | baseline: {status['baseline']}")
            elif command == 'h':
                print_history(pipeline)
            elif command:
                print(f"  Unknown command '{command}'")
    finally:
        pipeline.stop()
        engine.dispose()
        print("\n✓ Session ended")


if __name__ == '__main__':
    main()
