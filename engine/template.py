"""TemplateEngine — resolve every placeholder of one document.

Usage::

    engine = TemplateEngine(ResolverEnv(user=..., site=...))
    values = engine.process(document, {"company": "PT Maju", "total": 1500000})
    document.apply(values)

The document, not the data map, decides which tokens are resolved.  Tokens
are grouped by kind and resolved kind by kind in
:data:`resolvers.registry.RESOLUTION_ORDER`; the map is threaded through the
resolvers so later kinds see what earlier kinds wrote.

Output keys are the inner token text (``date:issue_date:Y-m-d``).  A token
already holding a value is left alone, which makes ``process`` idempotent on
its own output:
  - image and qrcode tokens count as resolved only when they hold an
    ``ImageAsset`` (``image:logo`` is both the source key and the bare token)
  - text kinds count as resolved when the key is present at all
"""

from typing import Iterable, Mapping

from app.utils.logging import get_logger
from cache.asset_cache import AssetCache
from cache.provisioning import provision_directory
from grammar.placeholder import parse, strip_token
from models.placeholder import PlaceholderDescriptor, PlaceholderKind
from models.resolution import SKIP, ImageAsset, ResolverEnv
from resolvers.base import FieldResolver
from resolvers.registry import RESOLUTION_ORDER, build_registry

logger = get_logger("engine.template")

_IMAGE_KINDS = frozenset({PlaceholderKind.IMAGE, PlaceholderKind.QRCODE})


def normalize_data_map(data_map: Mapping[str, object]) -> dict[str, object]:
    """Copy *data_map*, turning ``${key}`` keys into ``key``."""
    return {strip_token(str(key)): value for key, value in data_map.items()}


def _already_resolved(descriptor: PlaceholderDescriptor, values: Mapping[str, object]) -> bool:
    if descriptor.raw_token not in values:
        return False
    if descriptor.kind in _IMAGE_KINDS:
        return isinstance(values[descriptor.raw_token], ImageAsset)
    return True


class TemplateEngine:
    """Placeholder resolution over a document handle.

    Args:
        env:       User, site, clock and settings consulted by resolvers.
        registry:  Kind -> resolver table.  Built with
            :func:`resolvers.registry.build_registry` when omitted.
        cache:     Asset cache for generated images; only used when
            *registry* is omitted.  Defaults to one over
            ``env.settings.cache_dir``, which is provisioned here.
    """

    def __init__(
        self,
        env: ResolverEnv | None = None,
        registry: Mapping[PlaceholderKind, FieldResolver] | None = None,
        cache: AssetCache | None = None,
    ) -> None:
        self.env = env or ResolverEnv()
        if registry is None:
            if cache is None:
                provision_directory(self.env.settings.cache_dir)
                cache = AssetCache.from_settings(self.env.settings)
            registry = build_registry(cache, self.env.settings)
        self.registry = dict(registry)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def process(self, document, data_map: Mapping[str, object]) -> dict[str, object]:
        """Return a new map with every resolvable token of *document* filled in.

        *document* is anything with a ``placeholders()`` method returning the
        inner tokens present, normally a
        :class:`~engine.document.TemplateDocument`.  The caller's map is not
        modified.
        """
        return self.resolve_tokens(document.placeholders(), data_map)

    def resolve_tokens(self, tokens: Iterable[str], data_map: Mapping[str, object]) -> dict[str, object]:
        """Resolve an explicit token list against *data_map*."""
        values = normalize_data_map(data_map)
        by_kind = self._group(tokens)

        resolved = 0
        for kind in RESOLUTION_ORDER:
            resolver = self.registry.get(kind)
            if resolver is None:
                continue
            for descriptor in by_kind.get(kind, []):
                if _already_resolved(descriptor, values):
                    continue
                value = resolver.resolve(descriptor, values, self.env)
                if value is SKIP:
                    logger.debug("placeholder_skipped", token=descriptor.raw_token)
                    continue
                values[descriptor.raw_token] = value
                resolved += 1

        logger.debug("placeholders_resolved", resolved=resolved, total=sum(map(len, by_kind.values())))
        return values

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _group(tokens: Iterable[str]) -> dict[PlaceholderKind, list[PlaceholderDescriptor]]:
        by_kind: dict[PlaceholderKind, list[PlaceholderDescriptor]] = {}
        seen: set[str] = set()
        for token in tokens:
            inner = strip_token(token)
            if inner in seen:
                continue
            seen.add(inner)
            descriptor = parse(inner)
            if descriptor is None:
                continue
            by_kind.setdefault(descriptor.kind, []).append(descriptor)
        return by_kind
