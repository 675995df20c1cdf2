"""``${user:FIELD}`` resolver: the current user from the env."""

from models.placeholder import PlaceholderDescriptor, PlaceholderKind
from models.resolution import ResolvedValue, ResolverEnv
from resolvers.base import DataMap, as_text


class UserResolver:
    kind = PlaceholderKind.USER

    def resolve(
        self,
        descriptor: PlaceholderDescriptor,
        data_map: DataMap,
        env: ResolverEnv,
    ) -> ResolvedValue:
        field = descriptor.arg(0, "")
        user = env.user

        if field == "name":
            return user.display_name
        if field == "email":
            return user.email
        if field == "role":
            return ", ".join(user.roles)
        # Any other attribute of the user object, including extras.
        return as_text(getattr(user, field, None)) if field.isidentifier() else ""
