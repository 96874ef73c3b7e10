class InternalURIs:
    API = "/api"
    SEARCH = API + "/search"
    UPLOAD = API + "/upload"
    DOCUMENTS = API + "/documents"
    DOCUMENT = DOCUMENTS + "/{documentId}"
    DOCUMENT_PDF = DOCUMENT + "/pdf"
    IMPORT_ALL_PDFS = API + "/import-all-pdfs"


class Headers:
    SESSION_ID = "x-session-id"
    SESSION_ID_ALT = "session-id"
