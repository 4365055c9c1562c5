from __future__ import annotations

from typing import Final

# Poll batch entry `type`
MESSAGE_TYPE_PRIVATE: Final = 0
MESSAGE_TYPE_GROUP: Final = 1

# sendGroup `type`
GROUP_MESSAGE_TYPE_TEXT: Final = 1
GROUP_MESSAGE_TYPE_BUTTONS: Final = 2

BUTTON_TYPE_DEFAULT: Final = "default"
BUTTON_TYPE_DESTRUCTIVE: Final = "destructive"

VISIBILITY_HIDDEN: Final = "1"
VISIBILITY_VISIBLE: Final = "0"

DISMISS_TYPE_SELECT: Final = "select"
DISMISS_TYPE_DISMISS: Final = "dismiss"

MENTION_USER_TYPE: Final = "0"

API_BASE_URL: Final = "https://apibot.luffa.im"
ENDPOINT_RECEIVE: Final = "/robot/receive"
ENDPOINT_SEND: Final = "/robot/send"
ENDPOINT_SEND_GROUP: Final = "/robot/sendGroup"

VERIFICATION_FAILED_MSG: Final = "Robot verification failed"
SOFT_FAIL_CODE: Final = 500

DEFAULT_POLL_INTERVAL_S: Final = 1.0
DEFAULT_HTTP_TIMEOUT_S: Final = 30.0
