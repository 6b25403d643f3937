"""The persisted app values and the rules for loading and replacing them."""

from __future__ import annotations

from collections.abc import Callable

import structlog

from .accounts import (
    add_email_account,
    bootstrap_accounts,
    derive_profile,
    remove_email_account,
    sanitize_categories,
    sanitize_email_accounts,
    scrub_profile,
)
from .history import DEFAULT_HISTORY_LIMIT, HistoryStore
from .models import AppUser, Category, EmailAccount, RemoteState, UserProfile, parse_many, parse_one
from .storage import KeyValueStore

logger = structlog.get_logger()

ACCOUNTS_KEY = "emailAccounts"
PROFILE_KEY = "userProfile"
CATEGORIES_KEY = "categories"
DARK_MODE_KEY = "darkMode"
ONBOARDED_KEY = "hasOnboarded"


class LocalState:
    """Inbox accounts, history, profile, categories and theme on the device.

    Values are sanitized on every load and on every remote overwrite.
    ``on_change`` is called after each user-driven save; remote overwrites
    do not call it.
    """

    def __init__(
        self,
        storage: KeyValueStore,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        on_change: Callable[[], object] | None = None,
    ) -> None:
        self._storage = storage
        self.history = HistoryStore(storage, limit=history_limit)
        self.on_change = on_change
        self.accounts: list[EmailAccount] = []
        self.profile = UserProfile()
        self.categories: list[Category] = sanitize_categories([])
        self.dark_mode = False
        self.has_onboarded = False

    @property
    def storage(self) -> KeyValueStore:
        return self._storage

    @property
    def needs_onboarding(self) -> bool:
        return not self.accounts

    def load(self) -> None:
        self.accounts = sanitize_email_accounts(parse_many(EmailAccount, self._storage.get(ACCOUNTS_KEY, [])))
        self.profile = scrub_profile(parse_one(UserProfile, self._storage.get(PROFILE_KEY)) or UserProfile())
        self.categories = sanitize_categories(parse_many(Category, self._storage.get(CATEGORIES_KEY, [])))
        self.dark_mode = bool(self._storage.get(DARK_MODE_KEY, False))
        self.has_onboarded = bool(self._storage.get(ONBOARDED_KEY, False))
        self.history.load()
        # Write back so dropped entries don't reappear on the next load.
        self._persist()
        logger.info(
            "local_state_loaded",
            accounts=len(self.accounts),
            history=len(self.history),
            categories=len(self.categories),
        )

    def snapshot(self) -> RemoteState:
        return RemoteState(
            email_accounts=list(self.accounts),
            history=self.history.items,
            user_profile=self.profile,
            categories=list(self.categories),
            dark_mode=self.dark_mode,
        )

    def apply_remote(self, remote: RemoteState) -> None:
        """Overwrite every local value with the remote snapshot."""
        self.accounts = sanitize_email_accounts(remote.email_accounts)
        self.profile = scrub_profile(remote.user_profile)
        self.categories = sanitize_categories(remote.categories)
        self.dark_mode = remote.dark_mode
        self.history.replace(remote.history)
        self._persist()
        logger.info("remote_state_applied", accounts=len(self.accounts), history=len(self.history))

    def bootstrap(self, user: AppUser | None) -> None:
        """Seed the first inbox and the profile from the signed-in identity."""
        accounts = bootstrap_accounts(self.accounts, user)
        profile = derive_profile(self.profile, user, accounts)
        if accounts != self.accounts or profile != self.profile:
            self.accounts = accounts
            self.profile = profile
            self.save()

    # ------------------------------------------------------------------
    # User-driven mutations
    # ------------------------------------------------------------------

    def add_account(self, email: str, alias: str = "") -> EmailAccount:
        self.accounts = add_email_account(self.accounts, email, alias)
        self.save()
        return self.accounts[-1]

    def remove_account(self, account_id: str) -> None:
        self.accounts = remove_email_account(self.accounts, account_id)
        self.save()

    def set_profile(self, profile: UserProfile) -> None:
        self.profile = profile
        self.save()

    def set_categories(self, categories: list[Category]) -> None:
        self.categories = sanitize_categories(categories)
        self.save()

    def set_dark_mode(self, enabled: bool) -> None:
        self.dark_mode = enabled
        self.save()

    def mark_onboarded(self) -> None:
        self.has_onboarded = True
        self._storage.set(ONBOARDED_KEY, True)

    def clear_history(self) -> None:
        self.history.clear()
        self._notify()

    def wipe(self) -> None:
        """Forget everything (account deletion / sign-out on a shared device)."""
        for key in (ACCOUNTS_KEY, PROFILE_KEY, CATEGORIES_KEY, DARK_MODE_KEY, ONBOARDED_KEY):
            self._storage.remove(key)
        self.history.clear()
        self.accounts = []
        self.profile = UserProfile()
        self.categories = sanitize_categories([])
        self.dark_mode = False
        self.has_onboarded = False

    def save(self) -> None:
        self._persist()
        self._notify()

    def _persist(self) -> None:
        self._storage.set(ACCOUNTS_KEY, [a.to_wire() for a in self.accounts])
        self._storage.set(PROFILE_KEY, self.profile.to_wire())
        self._storage.set(CATEGORIES_KEY, [c.to_wire() for c in self.categories])
        self._storage.set(DARK_MODE_KEY, self.dark_mode)

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
