"""
loyaltyhub/settings/routes.py
-----------------------------
/api/settings
"""
from loyaltyhub.errors import ValidationError
from loyaltyhub.settings import service, settings
from loyaltyhub.utils.request_helpers import json_body, query_args, require_fields, success


@settings.route('/settings', methods=['GET'])
def get_settings():
    args = query_args()
    if not args.get('business_id'):
        raise ValidationError(errors=['Business ID is required'])

    if args.get('settings_key'):
        setting = service.get_setting(args['business_id'], args['settings_key'])
        return success(setting=setting.to_dict() if setting else None)

    rows = service.get_business_settings(args['business_id'])
    return success(settings=[s.to_dict() for s in rows])


@settings.route('/settings', methods=['POST'])
def save_setting():
    data = json_body()
    errors = require_fields(data, [
        ('business_id', 'Business ID is required'),
        ('settings_key', 'Settings key is required'),
    ])
    if 'settings_value' not in data or data['settings_value'] is None:
        errors.append('Settings value is required')
    if errors:
        raise ValidationError(errors=errors)

    setting, created = service.upsert_setting(
        data['business_id'], str(data['settings_key']).strip(), data['settings_value'])
    if created:
        return success(201, message='Setting created successfully', setting=setting.to_dict())
    return success(message='Setting updated successfully', setting=setting.to_dict())


@settings.route('/settings', methods=['DELETE'])
def delete_setting():
    args = query_args()
    errors = require_fields(args, [
        ('business_id', 'Business ID is required'),
        ('settings_key', 'Settings key is required'),
    ])
    if errors:
        raise ValidationError(errors=errors)
    service.delete_setting(args['business_id'], args['settings_key'])
    return success(message='Setting deleted successfully')
