from __future__ import annotations

from abdullagram.domain.links import Association, Reference
from abdullagram.domain.value_objects import LinkPolicy

# Many-to-many. User -> User, stored as two independent directed sets.
BLOCKING = Association(
    "blocking",
    forward="_blocked_users",
    reverse="_blocked_by",
    on_duplicate=LinkPolicy.IDEMPOTENT,
    on_missing=LinkPolicy.IDEMPOTENT,
)

# User -> Stickerpack
SAVED_PACKS = Association(
    "saved stickerpacks",
    forward="_saved_stickerpacks",
    reverse="_saved_by",
)

# Text -> User
MENTIONS = Association(
    "mentions",
    forward="_mentioned_users",
    reverse="_mentioned_in",
)

# Sent -> User
READ_BY = Association(
    "read by",
    forward="_read_by",
    reverse="_read_messages",
)

# Folder -> Chat
FOLDER_CHATS = Association(
    "folder chats",
    forward="_chats",
    reverse="_folders",
    on_missing=LinkPolicy.IDEMPOTENT,
)

# Single-valued, reassigned atomically.
MESSAGE_SENDER = Reference("message sender", forward="_sender", reverse="_sent_messages")
MESSAGE_CHAT = Reference("message chat", forward="_chat", reverse="_history")
GROUP_ADMIN = Reference("group admin", forward="_admin", reverse="_admin_of")
PACK_MANAGER = Reference("stickerpack manager", forward="_manager", reverse="_managed_stickerpacks")
FOLDER_OWNER = Reference("folder owner", forward="_owner", reverse="_folders")
