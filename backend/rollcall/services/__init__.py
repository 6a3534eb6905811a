"""Service layer: the attendance core and its adapters."""
from dataclasses import dataclass

from flask import current_app

from .attendance_validator import AttendanceValidator
from .event_bus import SessionEventBus
from .lifecycle import SessionLifecycleController
from .session_store import SessionStore
from .token_service import TokenService


@dataclass
class RollCallServices:
    """Core objects owned by one application instance."""
    store: SessionStore
    validator: AttendanceValidator
    lifecycle: SessionLifecycleController
    event_bus: SessionEventBus


def build_services(config) -> RollCallServices:
    """Wire the core from a Flask config mapping."""
    store = SessionStore(TokenService(), max_name_length=config['MAX_NAME_LENGTH'])
    event_bus = SessionEventBus()
    return RollCallServices(
        store=store,
        validator=AttendanceValidator(store, min_name_length=config['MIN_STUDENT_NAME_LENGTH']),
        lifecycle=SessionLifecycleController(
            store,
            event_bus,
            rotation_interval=config['TOKEN_ROTATION_INTERVAL'],
            rotation_enabled=config['TOKEN_ROTATION_ENABLED'],
            idle_intervals=config['ROTATION_IDLE_INTERVALS']
        ),
        event_bus=event_bus
    )


def get_services() -> RollCallServices:
    """Services of the current application."""
    return current_app.extensions['rollcall']
