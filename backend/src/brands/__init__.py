"""Brand settings: subdomain, custom domain and visual branding per business."""
