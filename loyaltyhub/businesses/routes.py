"""
loyaltyhub/businesses/routes.py
-------------------------------
/api/businesses/<business_id>
"""
from loyaltyhub.auth import service as auth_service
from loyaltyhub.auth.decorators import business_member_required
from loyaltyhub.businesses import businesses
from loyaltyhub.businesses import service
from loyaltyhub.utils.request_helpers import json_body, success


@businesses.route('/<business_id>', methods=['GET'])
def get_business(business_id):
    return success(business=service.get_business(business_id).to_dict())


@businesses.route('/<business_id>', methods=['PUT'])
@business_member_required
def update_business(business_id):
    business = service.update_business_profile(business_id, json_body())
    return success(message='Business updated successfully', business=business.to_dict())


@businesses.route('/<business_id>/stats', methods=['GET'])
@business_member_required
def business_stats(business_id):
    return success(stats=service.get_business_stats(business_id))


@businesses.route('/<business_id>/staff', methods=['GET'])
@business_member_required
def business_staff(business_id):
    service.get_business(business_id)
    staff = auth_service.get_business_staff(business_id)
    return success(staff=[auth_service.user_profile(u) for u in staff])
