"""
Read-only status endpoint for the running daemon
"""

import logging
import threading

from flask import Flask, jsonify

logger = logging.getLogger(__name__)


def _controller_status(controller):
    record = controller.record
    return {
        'last_notified': record.last_notified,
        'notified_since_start': record.notified_since_start,
        'snooze_seconds': controller.snooze_seconds,
        'next_notification': controller.snooze_until(),
    }


def create_app(presence_loop, resource_loop, resource_controller, error_controller) -> Flask:
    """
    Build the status application

    Args:
        presence_loop: PresenceLoop whose tracker record is reported
        resource_loop: ResourceLoop whose last messages are reported
        resource_controller: SnoozeController of the resource class
        error_controller: SnoozeController of the delivery-error class
    """
    app = Flask(__name__)

    @app.route('/api/health')
    def health():
        return jsonify({'status': 'ok'})

    @app.route('/api/status')
    def status():
        tracker = presence_loop.tracker
        return jsonify({
            'missing-containers': {
                'last_check': presence_loop.last_tick,
                'missing': presence_loop.last_missing,
                'record': tracker.last_state,
                'snooze_seconds': tracker.snooze_seconds,
            },
            'resource-alerts': dict(
                _controller_status(resource_controller),
                last_check=resource_loop.last_tick,
                messages=resource_loop.last_messages,
            ),
            'delivery-errors': _controller_status(error_controller),
        })

    return app


def start_status_server(app: Flask, host: str, port: int) -> threading.Thread:
    """Serve app from a daemon thread"""
    thread = threading.Thread(
        target=app.run,
        kwargs={'host': host, 'port': port, 'debug': False, 'use_reloader': False},
        name='status-server',
        daemon=True
    )
    thread.start()
    logger.info("Status server listening on http://%s:%d", host, port)
    return thread
