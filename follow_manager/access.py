"""
follow_manager/access.py

Verificações de acesso que não dependem de chamadas externas:
- resolução de origem e cabeçalhos CORS das rotas do dashboard
- leitura do claim `role` do JWT enviado ao endpoint de sync
"""

import base64
import binascii
import hmac
import json
from urllib.parse import urlsplit

ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


def normalize_origin(origin: str) -> str | None:
    """Reduz uma origem a scheme://host[:porta]. Sem URL válida, remove só as barras finais."""
    trimmed = origin.strip()
    if not trimmed:
        return None
    if trimmed == "*":
        return "*"

    parts = urlsplit(trimmed)
    if parts.scheme and parts.netloc:
        return f"{parts.scheme.lower()}://{parts.netloc.lower()}"
    return trimmed.rstrip("/")


def resolve_allowed_origin(request_origin: str | None, allowed_origins) -> str | None:
    """
    Origem a devolver em Access-Control-Allow-Origin, ou None se recusada.

    Sem origens configuradas (ou com "*") qualquer origem é aceita.
    """
    normalized = [o for o in (normalize_origin(origin) for origin in allowed_origins) if o]

    if not normalized or "*" in normalized:
        return request_origin or "*"

    if not request_origin:
        return normalized[0]

    normalized_request = normalize_origin(request_origin)
    if not normalized_request:
        return None

    return request_origin if normalized_request in normalized else None


def build_cors_headers(request_origin: str | None, allowed_origins, methods: str) -> dict[str, str]:
    headers = {
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Allow-Methods": methods,
    }
    resolved = resolve_allowed_origin(request_origin, allowed_origins)
    if resolved:
        headers["Access-Control-Allow-Origin"] = resolved
    return headers


def bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):]


def decode_jwt_role(authorization: str | None) -> str | None:
    """
    Lê o claim `role` do payload do JWT sem verificar a assinatura.
    A autenticidade do token é conferida à parte por `is_service_token()`.
    """
    token = bearer_token(authorization)
    if token is None:
        return None

    segments = token.split(".")
    if len(segments) < 2:
        return None

    payload_segment = segments[1]
    padded = payload_segment + "=" * (-len(payload_segment) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(padded))
    except (binascii.Error, ValueError):
        return None

    if not isinstance(payload, dict):
        return None
    role = payload.get("role")
    return role if isinstance(role, str) else None


def is_service_token(authorization: str | None, service_role_key: str) -> bool:
    token = bearer_token(authorization)
    if token is None:
        return False
    return hmac.compare_digest(token.encode(), service_role_key.encode())
