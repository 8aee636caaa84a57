"""Persistence for orders, vinyls, users and verification tokens.

Every ``save`` commits immediately, so each record is written atomically on
its own; nothing here spans several records in one transaction.
"""

from typing import List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .models import EmailVerificationToken, Order, User, Vinyl


class Repository:
    model = None

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, entity_id: str):
        # populate_existing forces a fresh read instead of the identity map copy
        return await self.session.get(self.model, entity_id, populate_existing=True)

    async def find_all(self) -> list:
        result = await self.session.execute(select(self.model))
        return list(result.scalars().all())

    async def exists(self, entity_id: str) -> bool:
        return await self.get(entity_id) is not None

    async def save(self, entity):
        self.session.add(entity)
        try:
            await self.session.commit()
        except IntegrityError:
            # Leave the session usable for the caller
            await self.session.rollback()
            raise
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity_id: str) -> None:
        await self.session.execute(delete(self.model).where(self.model.id == entity_id))
        await self.session.commit()


class OrderRepository(Repository):
    model = Order

    async def find_by_payment_id(self, payment_id: str) -> Optional[Order]:
        result = await self.session.execute(
            select(Order).where(Order.payment_id == payment_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def find_by_user_id(self, user_id: str) -> List[Order]:
        result = await self.session.execute(select(Order).where(Order.user_id == user_id))
        return list(result.scalars().all())


class VinylRepository(Repository):
    model = Vinyl

    async def search(self, term: str) -> List[Vinyl]:
        pattern = f"%{term.lower()}%"
        result = await self.session.execute(
            select(Vinyl).where(or_(func.lower(Vinyl.title).like(pattern), func.lower(Vinyl.artist).like(pattern)))
        )
        return list(result.scalars().all())


class UserRepository(Repository):
    model = User

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        return await self.find_by_email(email) is not None


class EmailVerificationTokenRepository(Repository):
    model = EmailVerificationToken

    async def find_by_token(self, token: str) -> Optional[EmailVerificationToken]:
        result = await self.session.execute(
            select(EmailVerificationToken).where(EmailVerificationToken.token == token)
        )
        return result.scalar_one_or_none()

    async def find_by_user_id(self, user_id: str) -> Optional[EmailVerificationToken]:
        result = await self.session.execute(
            select(EmailVerificationToken).where(EmailVerificationToken.user_id == user_id)
        )
        return result.scalars().first()

    async def delete_by_user_id(self, user_id: str) -> None:
        await self.session.execute(
            delete(EmailVerificationToken).where(EmailVerificationToken.user_id == user_id)
        )
        await self.session.commit()
