# =============================================================================
# FernID Backend
# models.py - Domain Models
#
# Plain records for users, admin permissions, fern species and scans.
# Rows from the hosted backend are turned into these by mappers.py.
# =============================================================================

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Capability(Enum):
    """
    The fixed set of admin capabilities.

    Values are the keys used in the stored permissions object. Adding a
    capability means adding a member here.
    """
    MANAGE_USERS = 'manageUsers'
    MANAGE_CONTENT = 'manageContent'
    VIEW_ANALYTICS = 'viewAnalytics'
    SYSTEM_SETTINGS = 'systemSettings'

    @property
    def attr(self) -> str:
        return self.name.lower()


@dataclass
class AdminPermissions:
    """
    Capability flags attached to an admin account.
    """
    manage_users: bool = False
    manage_content: bool = False
    view_analytics: bool = False
    system_settings: bool = False

    @classmethod
    def from_row(cls, row: Optional[dict]) -> 'AdminPermissions':
        """
        Build permissions from a stored object keyed by capability value.

        Unknown keys are ignored; missing keys are False.
        """
        row = row or {}
        return cls(**{cap.attr: bool(row.get(cap.value, False)) for cap in Capability})

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'AdminPermissions':
        """
        Build permissions from a request body or session payload.

        Keys may be snake_case or the stored camelCase capability values.
        """
        data = data or {}
        return cls(**{
            cap.attr: bool(data.get(cap.attr, data.get(cap.value, False)))
            for cap in Capability
        })

    def to_row(self) -> dict:
        return {cap.value: getattr(self, cap.attr) for cap in Capability}

    def to_dict(self) -> dict:
        return {cap.attr: getattr(self, cap.attr) for cap in Capability}

    def allows(self, capability: Capability) -> bool:
        return getattr(self, capability.attr)

    def granted(self) -> list:
        return [cap for cap in Capability if self.allows(cap)]


@dataclass
class User:
    """
    Identity record for a registered account.

    admin_permissions is only meaningful when role is 'admin'; a 'user'
    record always carries None.
    """
    id: str
    username: str
    email: str
    role: str
    created_at: str
    profile_picture: Optional[str] = None
    admin_permissions: Optional[AdminPermissions] = None

    @property
    def is_admin(self) -> bool:
        return self.role == 'admin'

    def has_capability(self, capability: Capability, legacy_full_access: bool = True) -> bool:
        """
        Check whether this account may use an admin capability.

        Args:
            capability: Capability being checked
            legacy_full_access: Grant everything to admins with no stored permissions

        Returns:
            bool: True if granted
        """
        if not self.is_admin:
            return False
        if self.admin_permissions is None:
            return legacy_full_access
        return self.admin_permissions.allows(capability)

    def to_dict(self) -> dict:
        """
        Serialize user to dictionary for API responses and the session token.
        """
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.role,
            'created_at': self.created_at,
            'profile_picture': self.profile_picture,
            'admin_permissions': (
                self.admin_permissions.to_dict() if self.admin_permissions else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'User':
        role = 'admin' if data.get('role') == 'admin' else 'user'
        permissions = data.get('admin_permissions')
        return cls(
            id=data['id'],
            username=data.get('username') or '',
            email=data.get('email') or '',
            role=role,
            created_at=data.get('created_at') or '',
            profile_picture=data.get('profile_picture') or None,
            admin_permissions=(
                AdminPermissions.from_dict(permissions)
                if role == 'admin' and permissions is not None else None
            ),
        )

    def __repr__(self):
        return f'<User {self.email}>'


@dataclass
class FernDetails:
    """Descriptive record for one fern species, keyed elsewhere by slug."""
    common_name: str
    scientific_name: str
    description: str = ''
    habitat: str = ''
    care_requirements: str = ''
    fun_facts: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'common_name': self.common_name,
            'scientific_name': self.scientific_name,
            'description': self.description,
            'habitat': self.habitat,
            'care_requirements': self.care_requirements,
            'fun_facts': list(self.fun_facts),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'FernDetails':
        fun_facts = data.get('fun_facts') or []
        if isinstance(fun_facts, str):
            fun_facts = [line.strip() for line in fun_facts.splitlines() if line.strip()]
        return cls(
            common_name=(data.get('common_name') or '').strip(),
            scientific_name=(data.get('scientific_name') or '').strip(),
            description=data.get('description') or '',
            habitat=data.get('habitat') or '',
            care_requirements=data.get('care_requirements') or '',
            fun_facts=list(fun_facts),
        )


@dataclass
class ScanResult:
    """
    One classification outcome owned by a user.

    species and details are set only when is_fern is True.
    """
    id: str
    user_id: str
    image: str
    is_plant: bool
    is_fern: bool
    confidence: float
    timestamp: str
    species: Optional[str] = None
    details: Optional[FernDetails] = None

    @property
    def display_name(self) -> str:
        if self.is_fern:
            return self.details.common_name if self.details else 'Unknown Fern'
        if self.is_plant:
            return 'Not a Fern'
        return 'Not a Plant'

    def matches(self, query: str) -> bool:
        """Case-insensitive match on the species common or scientific name."""
        if not query:
            return True
        if not self.details:
            return False
        query = query.lower()
        return (query in self.details.common_name.lower()
                or query in self.details.scientific_name.lower())

    def to_dict(self, include_image=True) -> dict:
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'is_plant': self.is_plant,
            'is_fern': self.is_fern,
            'species': self.species,
            'confidence': self.confidence,
            'confidence_percent': round(self.confidence * 100, 1),
            'timestamp': self.timestamp,
            'display_name': self.display_name,
            'details': self.details.to_dict() if self.details else None,
        }

        if include_image:
            data['image'] = self.image

        return data

    def __repr__(self):
        return f'<ScanResult {self.id} {self.display_name}>'
