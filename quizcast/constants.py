ROLE_HOST = "host"
ROLE_PLAYER = "player"
ROLES = {ROLE_HOST, ROLE_PLAYER}

# Fanout audiences for the two deployment variants.
AUDIENCE_ALL = "all"
AUDIENCE_HOSTS = "hosts"
AUDIENCES = {AUDIENCE_ALL, AUDIENCE_HOSTS}

# Inbound message discriminators.
MSG_HOST_CREATE = "host-create"
MSG_HOST_SUBSCRIBE = "host-subscribe"
MSG_PLAYER_JOIN = "player-join"
MSG_QUIZ_UPSERT = "quiz-upsert"
MSG_QUIZ_ACTIVATE = "quiz-activate"
MSG_COUNTS_REQUEST = "counts-request"
MSG_ANSWER = "answer"
MSG_QUIZ_RESET = "quiz-reset"

# Outbound message discriminators.
OUT_ROOM = "room"
OUT_JOINED = "joined"
OUT_PLAYERS = "players"
OUT_QUIZ_ACTIVE = "quiz-active"
OUT_COUNTS = "counts"
OUT_ANSWER_ACK = "answer-ack"

# Frames queued per connection before further ones are dropped.
OUTBOX_LIMIT = 256
ROOM_CODE_LENGTH = 6

__all__ = [
    "ROLE_HOST",
    "ROLE_PLAYER",
    "ROLES",
    "AUDIENCE_ALL",
    "AUDIENCE_HOSTS",
    "AUDIENCES",
    "MSG_HOST_CREATE",
    "MSG_HOST_SUBSCRIBE",
    "MSG_PLAYER_JOIN",
    "MSG_QUIZ_UPSERT",
    "MSG_QUIZ_ACTIVATE",
    "MSG_COUNTS_REQUEST",
    "MSG_ANSWER",
    "MSG_QUIZ_RESET",
    "OUT_ROOM",
    "OUT_JOINED",
    "OUT_PLAYERS",
    "OUT_QUIZ_ACTIVE",
    "OUT_COUNTS",
    "OUT_ANSWER_ACK",
    "OUTBOX_LIMIT",
    "ROOM_CODE_LENGTH",
]
