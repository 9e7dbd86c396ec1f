# Routes served by the Web Storage API; update if the backend router changes.

BASE_URL = "http://127.0.0.1:8080"

PUBLIC = {
    "login": {
        "method": "POST",
        "path": "/api/pub/login",
    },
    "signup": {
        "method": "POST",
        "path": "/api/pub/signup",
    },
}

FILES = {
    "list": {
        "method": "GET",
        "path": "/api/auth/files",
    },
    "upload": {
        "method": "POST",
        "path": "/api/auth/upload",
    },
    "rename": {
        "method": "POST",
        "path": "/api/auth/rename",
    },
    "download": {
        "method": "GET",
        "path": "/api/auth/download",
    },
    "delete": {
        "method": "POST",
        "path": "/api/auth/delete",
    },
}
