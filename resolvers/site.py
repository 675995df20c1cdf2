"""``${site:FIELD}`` resolver: site metadata from the env."""

from models.placeholder import PlaceholderDescriptor, PlaceholderKind
from models.resolution import ResolvedValue, ResolverEnv
from resolvers.base import DataMap

SITE_FIELDS: frozenset[str] = frozenset(
    {"name", "url", "description", "admin_email", "version"}
)


class SiteResolver:
    kind = PlaceholderKind.SITE

    def resolve(
        self,
        descriptor: PlaceholderDescriptor,
        data_map: DataMap,
        env: ResolverEnv,
    ) -> ResolvedValue:
        field = descriptor.arg(0, "")
        if field not in SITE_FIELDS:
            return ""
        return getattr(env.site, field)
