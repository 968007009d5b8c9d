from datetime import datetime

USER_HEADERS = {"X-User-Id": "user-1"}
OTHER_USER_HEADERS = {"X-User-Id": "user-2"}
ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Role": "admin"}

# фиксированное "сейчас" для тестов протоколов
NOW = datetime(2030, 5, 10, 12, 0)
