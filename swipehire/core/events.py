TRACE = "trace"
CHUNK = "chunk"
DONE = "done"
ERROR = "error"
CONNECTED = "connected"
PROGRESS = "progress"
RESULT = "result"
