"""Sanitizers for inbox accounts, categories and the user profile.

All functions are pure: they take the current values and return new ones.
"""

from __future__ import annotations

import re

from .errors import ValidationError
from .models import AppUser, Category, EmailAccount, UserProfile
from .validation import EmailStatus, get_destination_email_status, normalize_email, status_message

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="all", name="All", color="#636E72", icon="folder"),
    Category(id="ideas", name="Ideas", color="#6C5CE7", icon="lightbulb"),
    Category(id="tasks", name="Tasks", color="#00B894", icon="check"),
    Category(id="notes", name="Notes", color="#0984E3", icon="file"),
    Category(id="reminders", name="Reminders", color="#FDCB6E", icon="bell"),
)
BUILTIN_CATEGORY_IDS = frozenset(c.id for c in DEFAULT_CATEGORIES)
UNCATEGORIZED = "all"


def _local_part(email: str) -> str:
    return email.split("@", 1)[0]


# ----------------------------------------------------------------------
# Email accounts
# ----------------------------------------------------------------------


def sanitize_email_accounts(accounts: list[EmailAccount]) -> list[EmailAccount]:
    """Normalize, drop unusable and duplicate addresses, re-mark the default.

    Idempotent.  Only the first surviving entry is the default.
    """
    seen: set[str] = set()
    result: list[EmailAccount] = []
    for account in accounts:
        email = normalize_email(account.email)
        if get_destination_email_status(email) is not EmailStatus.OK or email in seen:
            continue
        seen.add(email)
        result.append(
            account.model_copy(
                update={
                    "email": email,
                    "alias": account.alias.strip() or _local_part(email),
                    "is_default": not result,
                }
            )
        )
    return result


def add_email_account(
    accounts: list[EmailAccount],
    email: str,
    alias: str = "",
) -> list[EmailAccount]:
    """Append a new inbox. Raises :class:`ValidationError` when it can't be used."""
    normalized = normalize_email(email)
    status = get_destination_email_status(normalized)
    if status is not EmailStatus.OK:
        raise ValidationError(status_message(status))
    if any(normalize_email(a.email) == normalized for a in accounts):
        raise ValidationError("This email is already in your list.")
    account = EmailAccount(email=normalized, alias=alias.strip())
    return sanitize_email_accounts([*accounts, account])


def remove_email_account(accounts: list[EmailAccount], account_id: str) -> list[EmailAccount]:
    return sanitize_email_accounts([a for a in accounts if a.id != account_id])


def clamp_selection(index: int, accounts: list[EmailAccount]) -> int:
    if index < len(accounts):
        return max(0, index)
    return max(0, len(accounts) - 1)


def bootstrap_accounts(accounts: list[EmailAccount], user: AppUser | None) -> list[EmailAccount]:
    """Create the first inbox from the signed-in identity when none exist yet."""
    if accounts or user is None:
        return accounts
    if get_destination_email_status(user.email) is not EmailStatus.OK:
        return accounts
    return sanitize_email_accounts([EmailAccount(email=user.email)])


# ----------------------------------------------------------------------
# Categories
# ----------------------------------------------------------------------


def sanitize_categories(saved: list[Category]) -> list[Category]:
    """Restore the built-ins in canonical order, then append custom categories."""
    custom: list[Category] = []
    seen = set(BUILTIN_CATEGORY_IDS)
    for category in saved:
        if not category.id or category.id in seen:
            continue
        seen.add(category.id)
        custom.append(category)
    return [*(c.model_copy() for c in DEFAULT_CATEGORIES), *custom]


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.strip().lower()).strip("-")


def add_category(
    categories: list[Category],
    name: str,
    color: str = "#636E72",
    icon: str = "tag",
) -> list[Category]:
    category_id = _slug(name)
    if not category_id:
        raise ValidationError("Category name is required.")
    if any(c.id == category_id for c in categories):
        raise ValidationError("A category with this name already exists.")
    return sanitize_categories(
        [*categories, Category(id=category_id, name=name.strip(), color=color, icon=icon)]
    )


def normalize_category(category: str | None) -> str | None:
    """``None`` and ``"all"`` both mean uncategorized."""
    if not category or category == UNCATEGORIZED:
        return None
    return category


# ----------------------------------------------------------------------
# Profile
# ----------------------------------------------------------------------


def scrub_profile(profile: UserProfile) -> UserProfile:
    """Reset a profile carrying a placeholder email so the user is re-prompted."""
    if get_destination_email_status(profile.email) is EmailStatus.GENERATED:
        return UserProfile()
    return profile


def derive_profile(
    profile: UserProfile,
    user: AppUser | None,
    accounts: list[EmailAccount],
) -> UserProfile:
    """Fill blank profile fields from identity metadata or the first inbox."""
    profile = scrub_profile(profile)
    if profile.email:
        return profile

    email = ""
    display = ""
    if user is not None and get_destination_email_status(user.email) is EmailStatus.OK:
        email = normalize_email(user.email)
        metadata = user.user_metadata or {}
        display = metadata.get("full_name") or metadata.get("name") or metadata.get("given_name") or ""
    if not email and accounts:
        email = accounts[0].email
    if not email:
        return profile

    local = _local_part(email)
    return UserProfile(
        email=email,
        username=profile.username or local or "user",
        display_name=profile.display_name or display or local or "User",
    )


def update_profile(
    profile: UserProfile,
    username: str,
    display_name: str,
    accounts: list[EmailAccount],
) -> UserProfile:
    username = username.strip()
    if not username:
        raise ValidationError("Username is required")
    return UserProfile(
        username=username,
        display_name=display_name.strip() or username,
        email=profile.email or (accounts[0].email if accounts else ""),
    )
