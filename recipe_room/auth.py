import logging

from starlette.requests import Request

from recipe_book.errors import NotAuthenticated
from recipe_book.models import User
from recipe_book.users import UserNotFound, UsersRepository


logger = logging.getLogger(__name__)


SESSION_KEY = "user_id"


async def current_user(request: Request) -> User | None:
    """The signed in user, looked up once per request."""
    if hasattr(request.state, "user"):
        return request.state.user
    user = None
    user_id = request.session.get(SESSION_KEY)
    if user_id:
        users: UsersRepository = request.app.state.users
        try:
            user = await users.get(user_id)
        except UserNotFound:
            logger.info("Dropping session for unknown user %s", user_id)
            request.session.pop(SESSION_KEY, None)
    request.state.user = user
    return user


async def require_user(request: Request) -> User:
    user = await current_user(request)
    if user is None:
        raise NotAuthenticated()
    return user


def sign_in(request: Request, user: User) -> None:
    request.session.clear()
    request.session[SESSION_KEY] = user.id
    request.state.user = user
    logger.info("User %s signed in", user.id)


def sign_out(request: Request) -> None:
    request.session.clear()
    request.state.user = None
