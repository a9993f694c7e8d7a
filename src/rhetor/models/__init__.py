from rhetor.models.auth_token import AuthToken
from rhetor.models.cohort import Cohort, Pod, PodMembership
from rhetor.models.review import Review, ReviewQueueItem
from rhetor.models.session import PracticeSession
from rhetor.models.user import RhetorUser

__all__ = [
    "AuthToken",
    "Cohort",
    "Pod",
    "PodMembership",
    "PracticeSession",
    "Review",
    "ReviewQueueItem",
    "RhetorUser",
]
