RSVP_URL = "/api/v1/rsvp/{token}"
RSVP_DRAFT_URL = "/api/v1/rsvp/{token}/draft"
