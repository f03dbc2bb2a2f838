from contextvars import ContextVar

# Set per request by the mock server middleware, read by the log formatter.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
