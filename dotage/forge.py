import logging
import typing

import attr
import requests

log = logging.getLogger(__name__)


class KeyFetcher:
    host: str

    def url(self, username: str) -> str:
        return f"https://{self.host}/{username}.keys"

    def fetch(self, username: str) -> typing.List[str]:
        raise NotImplementedError


@attr.s(frozen=True)
class Forge(KeyFetcher):
    """Fetches the public keys a code forge publishes for each user."""

    host: str = attr.ib()
    timeout: float = attr.ib(default=30.0)

    def fetch(self, username: str) -> typing.List[str]:
        url = self.url(username)
        log.debug(f"Fetching keys from {url}")
        try:
            response = requests.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as error:
            log.warning(f"Could not fetch keys for {username} from {url}: {error}")
            return []

        keys = [line.strip() for line in response.text.splitlines() if line.strip()]
        log.info(f"Fetched {len(keys)} keys for {username}")
        return keys
