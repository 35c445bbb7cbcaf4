"""Video resource: typed records, validation rules, errors and the service layer.

The transport layer decodes requests into the models defined here and hands them to
`VideoService`, which validates them and delegates persistence to the record store.
"""
