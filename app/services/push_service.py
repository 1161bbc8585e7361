"""Push delivery through Firebase Cloud Messaging.

Two protocol generations are supported. The v1 API is authenticated with a
service-account credential through ``firebase-admin``; the legacy API is a plain
HTTP POST signed with a static server key. :class:`PushDeliveryAdapter` tries
v1 first and falls back to legacy once, and never raises: every outcome is
reported as a :class:`PushResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Callable, Mapping, Optional, Protocol

import firebase_admin
import requests
from fastapi import Depends
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import PERMISSION_DENIED, UNAUTHENTICATED, FirebaseError
from google.auth.exceptions import GoogleAuthError
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.config import FCM_LEGACY_URL, Settings, settings
from app.db.session import get_session
from app.models.user import User

PROTOCOL_V1 = 'v1'
PROTOCOL_LEGACY = 'legacy'
FIREBASE_APP_NAME = 'secondhand-push'
MIN_SERVER_KEY_LENGTH = 50


class PushError(Exception):
    """Base class for failures of a single delivery attempt."""

    reason = 'push_error'


class PushConfigurationError(PushError):
    reason = 'configuration'


class PushAuthError(PushError):
    reason = 'unauthorized'


class PushEndpointError(PushError):
    reason = 'endpoint_not_found'


class PushTransportError(PushError):
    reason = 'transport'


@dataclass(frozen=True)
class PushConfig:
    credentials_path: Optional[Path] = None
    server_key: Optional[str] = None
    legacy_url: str = FCM_LEGACY_URL
    timeout: float = 5.0
    click_action: str = 'FLUTTER_NOTIFICATION_CLICK'

    @classmethod
    def from_settings(cls, source: Settings) -> 'PushConfig':
        return cls(
            credentials_path=source.FIREBASE_CREDENTIALS_PATH,
            server_key=source.FIREBASE_SERVER_KEY,
            legacy_url=source.FCM_LEGACY_URL,
            timeout=source.PUSH_TIMEOUT_SECONDS,
            click_action=source.PUSH_CLICK_ACTION,
        )


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class PushResult:
    delivered: bool
    protocol: Optional[str] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.delivered


def build_push_data(
    title: str,
    body: str,
    click_action: str,
    data: Optional[Mapping[str, object]] = None,
) -> dict[str, str]:
    # FCM data values must be strings; title/body are repeated for data-only clients
    payload: dict[str, str] = {
        'title': title,
        'body': body,
        'message': body,
        'click_action': click_action,
    }
    for key, value in (data or {}).items():
        if value is None:
            continue
        payload[str(key)] = str(value)
    return payload


class PushSender(Protocol):
    protocol: str

    def send(self, token: str, message: PushMessage) -> None:
        ...


class FirebaseV1Sender:
    protocol = PROTOCOL_V1

    def __init__(self, credentials_path: Path, *, timeout: float, click_action: str) -> None:
        self._credentials_path = Path(credentials_path)
        self._timeout = timeout
        self._click_action = click_action
        self._app: Optional[firebase_admin.App] = None

    def _get_app(self) -> firebase_admin.App:
        if self._app is not None:
            return self._app
        try:
            self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            try:
                certificate = credentials.Certificate(str(self._credentials_path))
                self._app = firebase_admin.initialize_app(
                    certificate,
                    options={'httpTimeout': self._timeout},
                    name=FIREBASE_APP_NAME,
                )
            except (ValueError, OSError) as exc:
                raise PushConfigurationError(
                    f"cannot load service account {self._credentials_path}: {exc}"
                ) from exc
        return self._app

    def build_message(self, token: str, message: PushMessage) -> messaging.Message:
        return messaging.Message(
            token=token,
            notification=messaging.Notification(title=message.title, body=message.body),
            data=message.data,
            android=messaging.AndroidConfig(
                priority='high',
                notification=messaging.AndroidNotification(
                    click_action=self._click_action,
                    sound='default',
                ),
            ),
            apns=messaging.APNSConfig(
                headers={'apns-priority': '10'},
                payload=messaging.APNSPayload(aps=messaging.Aps(sound='default', content_available=True)),
            ),
        )

    def send(self, token: str, message: PushMessage) -> None:
        app = self._get_app()
        try:
            messaging.send(self.build_message(token, message), app=app)
        except FirebaseError as exc:
            if exc.code in (UNAUTHENTICATED, PERMISSION_DENIED):
                raise PushAuthError(str(exc)) from exc
            raise PushTransportError(f"{exc.code}: {exc}") from exc
        except GoogleAuthError as exc:
            raise PushAuthError(str(exc)) from exc
        except (ValueError, OSError) as exc:
            raise PushTransportError(str(exc)) from exc


class LegacyFcmSender:
    protocol = PROTOCOL_LEGACY

    def __init__(
        self,
        server_key: str,
        *,
        url: str = FCM_LEGACY_URL,
        timeout: float = 5.0,
        http: Optional[requests.Session] = None,
    ) -> None:
        self._server_key = server_key
        self._url = url
        self._timeout = timeout
        self._http = http or requests.Session()

    def build_payload(self, token: str, message: PushMessage) -> dict:
        return {
            'to': token,
            'notification': {
                'title': message.title,
                'body': message.body,
                'sound': 'default',
            },
            'data': dict(message.data),
            'priority': 'high',
            'content_available': True,
        }

    def send(self, token: str, message: PushMessage) -> None:
        if len(self._server_key) < MIN_SERVER_KEY_LENGTH:
            raise PushConfigurationError('FIREBASE_SERVER_KEY looks invalid (too short)')
        try:
            response = self._http.post(
                self._url,
                json=self.build_payload(token, message),
                headers={
                    'Authorization': f"key={self._server_key}",
                    'Content-Type': 'application/json',
                },
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise PushTransportError(str(exc)) from exc

        status_code = response.status_code
        if 200 <= status_code < 300:
            return
        excerpt = (response.text or '')[:500]
        if status_code == 401:
            raise PushAuthError(f"server key rejected or expired (401): {excerpt}")
        if status_code == 404:
            raise PushEndpointError(f"legacy endpoint not found, migrate to the v1 API (404): {excerpt}")
        raise PushTransportError(f"gateway responded with status {status_code}: {excerpt}")


TokenLookup = Callable[[str], Optional[str]]


class PushDeliveryAdapter:
    def __init__(
        self,
        token_lookup: TokenLookup,
        *,
        primary: Optional[PushSender] = None,
        legacy: Optional[PushSender] = None,
        click_action: str = 'FLUTTER_NOTIFICATION_CLICK',
    ) -> None:
        self._token_lookup = token_lookup
        self._primary = primary
        self._legacy = legacy
        self._click_action = click_action

    @property
    def primary_configured(self) -> bool:
        return self._primary is not None

    @property
    def legacy_configured(self) -> bool:
        return self._legacy is not None

    def _resolve_token(self, recipient_id: str) -> Optional[str]:
        try:
            return self._token_lookup(recipient_id)
        except SQLAlchemyError as exc:
            logger.error("Push token lookup failed for user {}: {}", recipient_id, exc)
            return None

    def _attempt(self, sender: PushSender, recipient_id: str, token: str, message: PushMessage) -> Optional[str]:
        """Run one delivery attempt and return the failure reason, or None on success."""
        try:
            sender.send(token, message)
        except PushError as exc:
            logger.warning(
                "Push via {} failed for user {} (type={}): {}: {}",
                sender.protocol,
                recipient_id,
                message.data.get('type'),
                exc.reason,
                exc,
            )
            return exc.reason
        except Exception:
            logger.exception("Push via {} crashed for user {}", sender.protocol, recipient_id)
            return 'unexpected'
        logger.info("Push sent to user {} via {}", recipient_id, sender.protocol)
        return None

    def send(
        self,
        recipient_id: str,
        title: str,
        body: str,
        data: Optional[Mapping[str, object]] = None,
    ) -> PushResult:
        token = self._resolve_token(recipient_id)
        if not token:
            logger.warning("User {} has no FCM token, skipping push", recipient_id)
            return PushResult(delivered=False, error='missing_token')
        if self._primary is None and self._legacy is None:
            logger.warning("No push protocol configured, skipping push to user {}", recipient_id)
            return PushResult(delivered=False, error='not_configured')

        message = PushMessage(
            title=title,
            body=body,
            data=build_push_data(title, body, self._click_action, data),
        )
        error = None
        for sender in (self._primary, self._legacy):
            if sender is None:
                continue
            error = self._attempt(sender, recipient_id, token, message)
            if error is None:
                return PushResult(delivered=True, protocol=sender.protocol)
        return PushResult(delivered=False, error=error)


def build_senders(config: PushConfig) -> tuple[Optional[PushSender], Optional[PushSender]]:
    primary: Optional[PushSender] = None
    legacy: Optional[PushSender] = None
    if config.credentials_path is not None:
        primary = FirebaseV1Sender(
            config.credentials_path,
            timeout=config.timeout,
            click_action=config.click_action,
        )
    if config.server_key:
        legacy = LegacyFcmSender(config.server_key, url=config.legacy_url, timeout=config.timeout)
    return primary, legacy


@lru_cache
def get_push_senders() -> tuple[Optional[PushSender], Optional[PushSender]]:
    config = PushConfig.from_settings(settings)
    primary, legacy = build_senders(config)
    logger.info(
        "Push protocols configured: v1={} legacy={}",
        primary is not None,
        legacy is not None,
    )
    return primary, legacy


def get_push_token(session: Session, user_id: str) -> Optional[str]:
    user = session.get(User, user_id)
    return user.fcm_token if user else None


def get_push_adapter(session: Session = Depends(get_session)) -> PushDeliveryAdapter:
    primary, legacy = get_push_senders()
    return PushDeliveryAdapter(
        lambda user_id: get_push_token(session, user_id),
        primary=primary,
        legacy=legacy,
        click_action=settings.PUSH_CLICK_ACTION,
    )
