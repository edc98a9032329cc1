from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from orchestrator.routing_types import Freshness, RouteProfile

DEFAULT_ROUTES_PATH = Path(__file__).resolve().parent.parent / "config" / "search_routes.yaml"


@dataclass
class RouteRegistry:
    _profiles: dict[str, RouteProfile]
    _routing_defaults: dict[str, Any]
    _trust_overrides: dict[str, dict[str, float]]

    @classmethod
    def from_yaml(cls, path: str | None = None) -> "RouteRegistry":
        routes_path = Path(path) if path else DEFAULT_ROUTES_PATH
        if not routes_path.exists():
            raise ValueError(f"Search routes not found at {routes_path}")

        data = yaml.safe_load(routes_path.read_text(encoding="utf-8"))
        if not data or "domains" not in data:
            raise ValueError("Invalid search routes: missing domains")

        defaults = data.get("routing_defaults", {}) or {}
        default_providers = list(defaults.get("providers", []))
        default_count = int(defaults.get("result_count", 5))

        profiles: dict[str, RouteProfile] = {}
        for domain, ddata in data["domains"].items():
            ddata = ddata or {}
            if "route" not in ddata:
                raise ValueError(f"Missing route for domain {domain}")
            providers = ddata.get("providers", default_providers)
            if not isinstance(providers, list) or not providers:
                raise ValueError(f"Invalid providers list for domain {domain}")
            try:
                freshness = Freshness(str(ddata.get("freshness", "none")))
            except ValueError as e:
                raise ValueError(f"Invalid freshness for domain {domain}") from e
            profiles[domain] = RouteProfile(
                domain=domain,
                route=str(ddata["route"]),
                result_count=int(ddata.get("result_count", default_count)),
                freshness=freshness,
                webfetch=bool(ddata.get("webfetch", False)),
                providers=[str(p) for p in providers],
                suffix=str(ddata.get("suffix", "") or ""),
            )

        fallback = defaults.get("fallback_domain", "general")
        if fallback not in profiles:
            raise ValueError(f"Fallback domain {fallback} has no route")

        overrides = {
            domain: {k: float(v) for k, v in (weights or {}).items()}
            for domain, weights in (data.get("trust_overrides", {}) or {}).items()
        }
        return cls(_profiles=profiles, _routing_defaults=defaults, _trust_overrides=overrides)

    def routing_defaults(self) -> dict[str, Any]:
        return self._routing_defaults

    def supported_domains(self) -> list[str]:
        return list(self._profiles)

    def profile(self, domain: str) -> RouteProfile:
        fallback = self._routing_defaults.get("fallback_domain", "general")
        return self._profiles.get(domain) or self._profiles[fallback]

    def map_domain_to_route(self, domain: str) -> str:
        return self.profile(domain).route

    def get_result_count(self, domain: str) -> int:
        return self.profile(domain).result_count

    def should_web_fetch(self, domain: str) -> bool:
        return self.profile(domain).webfetch

    def get_freshness(self, domain: str) -> Freshness:
        return self.profile(domain).freshness

    def get_providers(self, domain: str) -> list[str]:
        return list(self.profile(domain).providers)

    def get_suffix(self, domain: str) -> str:
        return self.profile(domain).suffix

    def trust_weights(self, domain: str) -> dict[str, float]:
        weights = {
            k: float(v) for k, v in (self._routing_defaults.get("trust_weights", {}) or {}).items()
        }
        weights.update(self._trust_overrides.get(domain, {}))
        return weights
