from controllers.session import SessionController
from controllers.profile import ProfileController
from controllers.graph import GraphQueryEngine
