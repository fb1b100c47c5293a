import os

from dotenv import load_dotenv


load_dotenv()


def _database_url() -> str:
    url = os.getenv('DATABASE_URL')
    if url:
        return url
    database_path = os.getenv('DATABASE_PATH', 'db.sqlite')
    return f'sqlite:///{database_path}'


class Config:
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_EXPIRES_HOURS = int(os.getenv('JWT_EXPIRES_HOURS', 24))

    # members of this organisation manage every other one
    ADMIN_ORGANISATION = os.getenv('ADMIN_ORGANISATION', 'admin')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
