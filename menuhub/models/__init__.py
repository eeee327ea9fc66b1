from menuhub.models.tenant import Tenant
from menuhub.models.auth_account import AuthAccount
from menuhub.models.admin_user import AdminUser
from menuhub.models.admin_audit_log import AdminAuditLog
from menuhub.models.tenant_settings import TenantSettings
from menuhub.models.subscription import Subscription
from menuhub.models.menu_category import MenuCategory
from menuhub.models.menu_item import MenuItem
from menuhub.models.menu_item_variant import MenuItemVariant
from menuhub.models.menu_item_ingredient import MenuItemIngredient
from menuhub.models.modifier_group import ModifierGroup
from menuhub.models.modifier_option import ModifierOption
from menuhub.models.menu_item_modifier_group import MenuItemModifierGroup
from menuhub.models.menu_item_disabled_option import MenuItemDisabledOption
from menuhub.models.promotional_image import PromotionalImage
