import logging
import time
from typing import Optional, Tuple, Union

import requests

from .errors import OCSPValidationError

logger = logging.getLogger(__name__)

OCSP_REQUEST_CONTENT_TYPE = "application/ocsp-request"
OCSP_RESPONSE_CONTENT_TYPE = "application/ocsp-response"


class OCSPTransport:
    """Synchronous HTTP POST exchange with an OCSP responder.

    timeout is passed to requests as-is: seconds, or a (connect, read) tuple.
    No retries happen here.
    """

    def __init__(
        self,
        timeout: Union[float, Tuple[float, float], None] = 10,
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.session = session

    def send(self, url: str, der_request: bytes) -> bytes:
        headers = {"Content-Type": OCSP_REQUEST_CONTENT_TYPE, "Accept": OCSP_RESPONSE_CONTENT_TYPE}
        post = self.session.post if self.session is not None else requests.post

        logger.debug("Sending OCSP request to <%s>", url)
        start = time.perf_counter()
        try:
            resp = post(url, data=der_request, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise OCSPValidationError.transport(f"OCSP request to {url} failed: {e}") from e

        try:
            if resp.status_code != requests.codes.ok:
                logger.error("OCSP request has been failed (HTTP %s) - %s", resp.status_code, resp.reason)
                raise OCSPValidationError.transport(
                    f"OCSP request failed with status code {resp.status_code} ({resp.reason})",
                    status_code=resp.status_code,
                )
            try:
                body = resp.content
            except requests.RequestException as e:
                raise OCSPValidationError.transport(f"Failed to read OCSP response from {url}: {e}") from e
        finally:
            resp.close()

        latency_ms = int((time.perf_counter() - start) * 1000)
        logger.debug("Received %d byte OCSP response from <%s> in %d ms", len(body), url, latency_ms)
        return body
