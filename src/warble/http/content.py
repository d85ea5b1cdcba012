"""Header names and default content types."""

CONTENT_TYPE = "Content-Type"
CONTENT_LENGTH = "Content-Length"

CONTENT_BINARY = "application/octet-stream"
CONTENT_HTML = "text/html"
CONTENT_JSON = "application/json"
CONTENT_JSONP = "application/javascript"
CONTENT_TEXT = "text/plain"
CONTENT_XHTML = "application/xhtml+xml"
CONTENT_XML = "text/xml"

DEFAULT_CHARSET = "UTF-8"

