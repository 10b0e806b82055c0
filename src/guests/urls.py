GET_GUEST_INFO_URL = "/api/v1/guests/{token}"
