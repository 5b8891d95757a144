"""Real estate by intent.

Primary residence is exempt. Rental property counts net income only,
property for sale counts while listed, vacant land counts its sale price in
the period it was sold.
"""
from dataclasses import dataclass

from zakat_engine.constants import CATEGORY_REAL_ESTATE
from zakat_engine.models import AssetBreakdown
from . import AssetCalculator, exempt_item, safe_amount, safe_flag, zakatable_item


@dataclass(frozen=True)
class RealEstateValues:
    primary_residence_value: float = 0.0
    rental_income: float = 0.0
    rental_expenses: float = 0.0
    property_for_sale_value: float = 0.0
    property_for_sale_active: bool = False
    vacant_land_value: float = 0.0
    vacant_land_sold: bool = False
    sale_price: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> 'RealEstateValues':
        data = data or {}
        return cls(
            primary_residence_value=safe_amount(data, 'primary_residence_value'),
            rental_income=safe_amount(data, 'rental_income'),
            rental_expenses=safe_amount(data, 'rental_expenses'),
            property_for_sale_value=safe_amount(data, 'property_for_sale_value'),
            property_for_sale_active=safe_flag(data, 'property_for_sale_active'),
            vacant_land_value=safe_amount(data, 'vacant_land_value'),
            vacant_land_sold=safe_flag(data, 'vacant_land_sold'),
            sale_price=safe_amount(data, 'sale_price'),
        )

    @property
    def net_rental_income(self) -> float:
        return max(0.0, self.rental_income - self.rental_expenses)


class RealEstateCalculator(AssetCalculator):

    category = CATEGORY_REAL_ESTATE
    name = 'Real Estate'

    def parse_values(self, data: dict) -> RealEstateValues:
        return RealEstateValues.from_dict(data)

    def get_breakdown(self, values: RealEstateValues, prices=None, hawl_met: bool = True, currency: str = 'USD') -> AssetBreakdown:
        for_sale = hawl_met and values.property_for_sale_active
        land_sold = hawl_met and values.vacant_land_sold
        land_zakatable = values.sale_price if land_sold else 0.0

        items = {
            'primary_residence': exempt_item(values.primary_residence_value, 'Primary Residence'),
            'rental_property': zakatable_item(
                values.rental_income,
                values.net_rental_income if hawl_met else 0.0,
                'Rental Income',
                hawl_met,
            ),
            'property_for_sale': zakatable_item(
                values.property_for_sale_value,
                values.property_for_sale_value if for_sale else 0.0,
                'Property for Sale',
                for_sale,
            ),
            'vacant_land': zakatable_item(values.vacant_land_value, land_zakatable, 'Vacant Land', land_sold),
        }
        return AssetBreakdown.from_items(items)
