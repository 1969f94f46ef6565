from .user import User, UserAchievement  # noqa: F401
from .friendship import Friendship, FriendRequest  # noqa: F401
from .challenge import Challenge, ChallengeOverride  # noqa: F401
from .photo import Photo, PhotoLike, PhotoComment  # noqa: F401
from .notification import Notification  # noqa: F401
from .device_endpoint import DeviceEndpoint  # noqa: F401
