"""
Kuantum Ticaret - Admin Backend

Order lifecycle, inventory and finance side effects for the admin dashboard.
"""
