from __future__ import annotations

import re
from urllib.parse import urlsplit

from ..core.models import Fact
from ..ingest.models import ApiModel, Endpoint

# Parameter names (normalized: lowercase, no separators) that carry secrets
_SENSITIVE_PARAMS = {
    "password", "passwd", "pwd", "secret", "clientsecret", "token", "accesstoken",
    "refreshtoken", "idtoken", "apikey", "key", "auth", "authorization",
    "sessionid", "ssn", "creditcard", "cardnumber", "cvv", "pin",
}

_LOOPBACK_HOSTS = {"localhost", "127.0.0.1", "::1"}


class SecurityScanner:
    """Extracts authentication and transport facts."""

    name = "security"

    def scan(self, api: ApiModel) -> list[Fact]:
        if not api.detailed:
            return []

        facts: list[Fact] = []
        for endpoint in api.endpoints:
            facts.extend(self._endpoint_facts(api, endpoint))

        plaintext = [url for url in api.servers if _is_plaintext(url)]
        facts.append(Fact(key="security.plaintext_server", value=bool(plaintext),
                          source=self.name, field=", ".join(plaintext) or None))

        query_keys = [s.name for s in api.security_schemes if s.type == "apiKey" and s.location == "query"]
        facts.append(Fact(key="security.api_key_in_query", value=bool(query_keys),
                          source=self.name, field=", ".join(query_keys) or None))
        return facts

    def _endpoint_facts(self, api: ApiModel, endpoint: Endpoint) -> list[Fact]:
        location = endpoint.location
        required = api.effective_security(endpoint)
        # An explicit empty requirement marks a deliberately public operation
        unauthenticated = not required and endpoint.security is None

        sensitive = [
            p.name for p in endpoint.parameters_in("query")
            if re.sub(r"[-_.]", "", p.name).lower() in _SENSITIVE_PARAMS
        ]
        codes = set(endpoint.status_codes)
        missing_401 = bool(required) and bool(codes) and not codes & {"401", "4XX", "default"}

        return [
            Fact(key="security.unauthenticated", value=unauthenticated,
                 source=self.name, location=location),
            Fact(key="security.sensitive_query_param", value=bool(sensitive),
                 source=self.name, location=location,
                 field=", ".join(f"query.{n}" for n in sensitive) or None),
            Fact(key="security.missing_401", value=missing_401,
                 source=self.name, location=location),
        ]


def _is_plaintext(url: str) -> bool:
    if not url.lower().startswith("http://"):
        return False
    host = urlsplit(url).hostname or ""
    return host not in _LOOPBACK_HOSTS
