import redis.asyncio as aioredis
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .cart import CartService
from .database import get_session
from .email_verification import EmailVerificationService
from .mail import Mailer
from .markers import RedisMarkerStore
from .payments import PaymentWorkflow
from .repositories import EmailVerificationTokenRepository, OrderRepository, UserRepository, VinylRepository


def get_redis(request: Request) -> aioredis.Redis:
    return request.app.state.redis


def get_order_repository(session: AsyncSession = Depends(get_session)) -> OrderRepository:
    return OrderRepository(session)


def get_vinyl_repository(session: AsyncSession = Depends(get_session)) -> VinylRepository:
    return VinylRepository(session)


def get_user_repository(session: AsyncSession = Depends(get_session)) -> UserRepository:
    return UserRepository(session)


def get_token_repository(session: AsyncSession = Depends(get_session)) -> EmailVerificationTokenRepository:
    return EmailVerificationTokenRepository(session)


def get_cart_service(redis: aioredis.Redis = Depends(get_redis)) -> CartService:
    return CartService(redis)


def get_mailer() -> Mailer:
    return Mailer()


def get_payment_workflow(
    orders: OrderRepository = Depends(get_order_repository),
    vinyls: VinylRepository = Depends(get_vinyl_repository),
    redis: aioredis.Redis = Depends(get_redis),
) -> PaymentWorkflow:
    return PaymentWorkflow(orders, vinyls, RedisMarkerStore(redis))


def get_verification_service(
    tokens: EmailVerificationTokenRepository = Depends(get_token_repository),
    users: UserRepository = Depends(get_user_repository),
    mailer: Mailer = Depends(get_mailer),
) -> EmailVerificationService:
    return EmailVerificationService(tokens, users, mailer)
