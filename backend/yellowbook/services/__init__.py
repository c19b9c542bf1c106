"""
Yellow Book API: Services Layer
================================

Service Inventory:
    - EntryService: list / get / create over a YellowBookGateway, applying the
      entry schema on the way in and on the way out
    - seed_service: loads and validates seed entries, replaces table contents
"""
