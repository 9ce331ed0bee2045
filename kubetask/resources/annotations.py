"""Annotation keys shared with the controller host.

These keys are part of the wire contract and must stay byte-for-byte stable.
"""

# Set on attachments created due to a watch; value is the watch's UID
ANNOTATION_CREATED_DUE_TO_WATCH = "metac.openebs.io/created-due-to-watch"

# Set by the create builder on every resource it emits
ANNOTATION_RUN_UID = "run.dao.mayadata.io/uid"
ANNOTATION_RUN_NAME = "run.dao.mayadata.io/name"
ANNOTATION_WATCH_UID = "run.dao.mayadata.io/watch-uid"
ANNOTATION_WATCH_NAME = "run.dao.mayadata.io/watch-name"
ANNOTATION_TASK_KEY = "run.dao.mayadata.io/task-key"
