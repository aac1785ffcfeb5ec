from fantasta.db.session import engine
from fantasta.db.base import Base

# registers the models on Base.metadata before create_all
import fantasta.models  # noqa: F401


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)
