from models.user import User
from models.subscription import Subscription
from models.video import Video
