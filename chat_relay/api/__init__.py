from fastapi import APIRouter
from chat_relay.api import messages
from chat_relay.api import users

router = APIRouter()

# Include message and user routers
router.include_router(messages.router)
router.include_router(users.router)
