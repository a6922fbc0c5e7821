"""Transport-neutral HTTP primitives: methods, headers, statuses, requests and responses."""

from apiwire.http.headers import HeaderNames, Headers, encode_header_parameters
from apiwire.http.method import Method
from apiwire.http.request import Data, End, PreparedRequest, Request, RequestEvent, Start
from apiwire.http.response import BufferedResponse, Response, ResponseBody, ResultResponse
from apiwire.http.status import Status, standard_reason_phrase

__all__ = [
    "BufferedResponse",
    "Data",
    "End",
    "HeaderNames",
    "Headers",
    "Method",
    "PreparedRequest",
    "Request",
    "RequestEvent",
    "Response",
    "ResponseBody",
    "ResultResponse",
    "Start",
    "Status",
    "encode_header_parameters",
    "standard_reason_phrase",
]
