"""SQLAlchemy models for the GPT Builder billing API.

All models are imported here so that ``Base.metadata`` knows every table
(used by migrations and by the test suite's ``create_all``). If you add a new
model, import it in this file.
"""

from gptbuilder.models.connect_account import CreatorConnectAccount
from gptbuilder.models.gpt import UserGPT
from gptbuilder.models.subscription import CreatorSubscription, CustomerSubscription

__all__ = [
    "CreatorConnectAccount",
    "CreatorSubscription",
    "CustomerSubscription",
    "UserGPT",
]
