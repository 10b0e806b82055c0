ADMIN_RSVPS_URL = "/api/v1/admin/rsvps"
ADMIN_RSVP_URL = "/api/v1/admin/rsvps/{rsvp_id}"
ADMIN_GUESTS_URL = "/api/v1/admin/guests"
ADMIN_STATISTICS_URL = "/api/v1/admin/statistics"
ADMIN_SYNC_PENDING_URL = "/api/v1/admin/sync-pending"
