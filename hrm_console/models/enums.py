import enum


class Role(str, enum.Enum):
    user = "user"
    admin = "admin"
    super_admin = "super_admin"


class ProfileStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    blocked = "blocked"


class ProductStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
