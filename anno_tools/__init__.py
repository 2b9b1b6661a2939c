from ._setting import settings
