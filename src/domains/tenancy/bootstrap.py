# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""First administrator for a new tenant.

Creates a pre-confirmed account with a temporary password (or reuses the
existing account for that email) and links it to the tenant with an
admin membership. Account and membership are written in one transaction.
"""

import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.core.config.settings import TenancySettings
from src.domains.tenancy.credentials import PasswordHasher, generate_temporary_password
from src.domains.tenancy.errors import ProvisioningError
from src.domains.tenancy.naming import validate_tenant_id
from src.domains.tenancy.schemas import AdminAccount
from src.infrastructure.database.connection import CentralDatabase
from src.infrastructure.database.models.central import Account, TenantUser
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


class AdminBootstrapper:
    """Creates a tenant's first administrator.

    Example:
        >>> bootstrapper = AdminBootstrapper(database, settings.tenancy)
        >>> admin = await bootstrapper.bootstrap(tenant_id, "admin@ataturk.edu")
        >>> admin.temporary_password  # shown once, never stored
    """

    def __init__(
        self,
        database: CentralDatabase,
        settings: TenancySettings,
        hasher: PasswordHasher | None = None,
    ) -> None:
        """Initialize the bootstrapper.

        Args:
            database: Shared database.
            settings: Tenancy settings (password length, hash rounds).
            hasher: Password hasher; built from settings when omitted.
        """
        self._database = database
        self._settings = settings
        self._hasher = hasher or PasswordHasher(rounds=settings.password_hash_rounds)

    async def bootstrap(self, tenant_id: UUID | str, email: str) -> AdminAccount:
        """Create the admin account and membership.

        If an account already exists for the email it is reused and no
        password is generated.

        Args:
            tenant_id: Tenant to attach the admin to.
            email: Admin email.

        Returns:
            AdminAccount with the temporary password for new accounts.

        Raises:
            TenantValidationError: If the tenant id is malformed.
            ProvisioningError: If the account or membership cannot be written.
            DependencyError: If the database is unreachable.
        """
        tid = validate_tenant_id(tenant_id)
        email = email.strip().lower()
        temporary_password: str | None = None

        try:
            async with self._database.session() as session:
                result = await session.execute(
                    select(Account).where(func.lower(Account.email) == email)
                )
                account = result.scalar_one_or_none()
                created = account is None

                if account is None:
                    temporary_password = generate_temporary_password(
                        self._settings.temporary_password_length
                    )
                    account = Account(
                        email=email,
                        password_hash=self._hasher.hash(temporary_password),
                        email_confirmed_at=utc_now(),
                        must_change_password=True,
                        user_metadata={"role": ADMIN_ROLE, "tenant_id": str(tid)},
                    )
                    session.add(account)
                    await session.flush()

                membership = TenantUser(user_id=account.id, tenant_id=tid, role=ADMIN_ROLE)
                session.add(membership)
                await session.flush()

                admin = AdminAccount(
                    identity_id=account.id,
                    email=email,
                    membership_id=membership.id,
                    created=created,
                    temporary_password=temporary_password,
                )
        except IntegrityError as e:
            logger.error("Admin bootstrap failed for tenant %s: %s", tid, str(e.orig))
            raise ProvisioningError("admin", str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error("Admin bootstrap failed for tenant %s: %s", tid, str(e))
            raise ProvisioningError("admin", str(e)) from e

        logger.info(
            "Bootstrapped admin %s for tenant %s (new account: %s)",
            email,
            tid,
            created,
        )
        return admin

    async def revoke(self, tenant_id: UUID | str, admin: AdminAccount) -> None:
        """Undo a bootstrap.

        Removes the membership, and the account too if bootstrap created it.

        Args:
            tenant_id: Tenant the admin was attached to.
            admin: Result of the bootstrap to undo.
        """
        tid = validate_tenant_id(tenant_id)

        async with self._database.session() as session:
            await session.execute(
                delete(TenantUser).where(
                    TenantUser.id == admin.membership_id,
                    TenantUser.tenant_id == tid,
                )
            )
            if admin.created:
                await session.execute(delete(Account).where(Account.id == admin.identity_id))

        logger.info("Revoked admin %s for tenant %s", admin.email, tid)
