from src.models.user import User
from src.models.repository import Repository
from src.models.microservice import Microservice, ServiceStatus
from src.models.commit_suggestion import CommitSuggestion
from src.models.team_member import TeamMember

__all__ = [
    "User", "Repository", "Microservice", "ServiceStatus",
    "CommitSuggestion", "TeamMember",
]
