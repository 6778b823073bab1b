# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Optional XFA to AcroForm conversion through the Aspose Cloud API.

The service is used only when both ``ASPOSE_CLIENT_ID`` and
``ASPOSE_CLIENT_SECRET`` are set. Its output is not trusted to be clean:
the caller always runs the local repair on the converted document.
Any failure degrades to local-only repair; nothing is retried.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

import requests

from .exceptions import RemoteConversionError

logger = logging.getLogger(__name__)

ENV_CLIENT_ID = "ASPOSE_CLIENT_ID"
ENV_CLIENT_SECRET = "ASPOSE_CLIENT_SECRET"
ENV_BASE_URL = "ASPOSE_BASE_URL"

DEFAULT_BASE_URL = "https://api.aspose.cloud"
TOKEN_PATH = "/connect/token"
CONVERT_PATH = "/v3.0/pdf/convert/xfatoacroform"

# (connect, read) timeouts in seconds
TOKEN_TIMEOUT = (20, 20)
CONVERT_TIMEOUT = (20, 120)


@dataclass(frozen=True)
class RemoteConfig:
    """Credentials and endpoint of the conversion service.

    Attributes:
        client_id: OAuth client identifier.
        client_secret: OAuth client secret.
        base_url: Service root URL without trailing slash.
    """

    client_id: str
    client_secret: str
    base_url: str = DEFAULT_BASE_URL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "RemoteConfig | None":
        """Reads the configuration from environment variables.

        Args:
            environ: Mapping to read from (default: ``os.environ``).

        Returns:
            RemoteConfig, or None if either credential is missing or empty.
        """
        if environ is None:
            environ = os.environ
        client_id = environ.get(ENV_CLIENT_ID)
        client_secret = environ.get(ENV_CLIENT_SECRET)
        if not client_id or not client_secret:
            return None
        base_url = environ.get(ENV_BASE_URL) or DEFAULT_BASE_URL
        return cls(client_id, client_secret, base_url.rstrip("/"))


def fetch_access_token(session: requests.Session, config: RemoteConfig) -> str:
    """Exchanges client credentials for an access token.

    Raises:
        RemoteConversionError: On a non-2xx response or a response
            without ``access_token``.
    """
    response = session.post(
        config.base_url + TOKEN_PATH,
        data={
            "grant_type": "client_credentials",
            "client_id": config.client_id,
            "client_secret": config.client_secret,
        },
        headers={"Accept": "application/json"},
        timeout=TOKEN_TIMEOUT,
    )
    if not response.ok:
        raise RemoteConversionError(
            f"token request failed: HTTP {response.status_code} {response.text}"
        )

    try:
        token = response.json().get("access_token")
    except (ValueError, AttributeError) as e:
        raise RemoteConversionError(f"token response is not a JSON object: {e}") from e

    if not isinstance(token, str) or not token.strip():
        raise RemoteConversionError("token response has no access_token")
    return token


def convert_xfa_to_acroform(
    session: requests.Session, config: RemoteConfig, token: str, data: bytes
) -> bytes:
    """Uploads a PDF and returns the converted document bytes.

    Raises:
        RemoteConversionError: On a non-2xx response or an empty body.
    """
    response = session.put(
        config.base_url + CONVERT_PATH,
        data=data,
        headers={
            "Authorization": f"Bearer {token}",
            "Accept": "application/pdf",
        },
        timeout=CONVERT_TIMEOUT,
    )
    if not response.ok:
        raise RemoteConversionError(f"conversion failed: HTTP {response.status_code}")
    if not response.content:
        raise RemoteConversionError("conversion returned no content")
    return response.content


def try_remote_convert(
    data: bytes,
    config: RemoteConfig | None = None,
    session: requests.Session | None = None,
) -> bytes | None:
    """Converts an XFA PDF remotely, if the service is configured.

    Args:
        data: Raw bytes of the input PDF.
        config: Service configuration; read from the environment if None.
        session: HTTP session to use (a new one is created if None).

    Returns:
        The converted PDF bytes, or None when the service is not
        configured or the conversion failed.
    """
    if config is None:
        config = RemoteConfig.from_env()
    if config is None:
        logger.debug("Remote conversion not configured, skipping")
        return None

    own_session = session is None
    if own_session:
        session = requests.Session()

    try:
        token = fetch_access_token(session, config)
        converted = convert_xfa_to_acroform(session, config, token, data)
    except RemoteConversionError as e:
        logger.warning("Remote conversion error: %s", e)
        return None
    except requests.RequestException as e:
        logger.warning("Remote conversion error: %s", e)
        return None
    finally:
        if own_session:
            session.close()

    logger.info("Remote conversion succeeded (%d bytes)", len(converted))
    return converted
