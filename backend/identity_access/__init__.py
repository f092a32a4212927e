"""Identity and access: provider adapter, auth context, route guard and access rules."""
