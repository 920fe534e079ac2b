"""Built-in business operations, grouped by category."""

from stella.operations.base import Operation, Parameter


def _limit(default: int, what: str) -> Parameter:
    return Parameter(
        name="limit", type="number", description=f"Number of {what} to return", default=default
    )


PRODUCT_OPERATIONS = (
    Operation(
        name="getTopSellingProducts",
        description="Get the best-selling products ranked by total quantity sold",
        category="products",
        parameters=(_limit(5, "products"),),
        examples=(
            "What are the top selling products?",
            "Show me the best sellers",
            "Which products sold the most?",
            "Top 10 best selling items",
        ),
    ),
    Operation(
        name="listOutOfStockProducts",
        description="Find all products that are completely out of stock (stock = 0)",
        category="products",
        examples=(
            "What products are out of stock?",
            "Show me items with no inventory",
            "Which products are finished?",
            "List all empty stock items",
        ),
    ),
    Operation(
        name="listLowStockProducts",
        description="Find products below a certain stock threshold",
        category="products",
        parameters=(
            Parameter(
                name="threshold", type="number", description="Stock level threshold", default=10
            ),
        ),
        examples=(
            "What products are running low?",
            "Show me low stock items",
            "Which products need restocking?",
            "Products below 5 units",
        ),
    ),
    Operation(
        name="getProductsByCategory",
        description="Get all products in a specific category",
        category="products",
        parameters=(
            Parameter(
                name="categoryName",
                type="string",
                required=True,
                description="Name of the category to filter by",
            ),
        ),
        examples=(
            "Show me all snacks",
            "List products in Electronics category",
            "What beverages do we have?",
            "All items in Food category",
        ),
    ),
    Operation(
        name="getTotalStockValue",
        description="Calculate the total value of all inventory",
        category="products",
        examples=(
            "What's the total stock value?",
            "How much is our inventory worth?",
            "Total value of all products",
            "Sum of inventory value",
        ),
    ),
    Operation(
        name="getProductStockValue",
        description="Get the stock value for a specific product",
        category="products",
        parameters=(
            Parameter(
                name="productId",
                type="string",
                required=True,
                description="ID or exact name of the product",
            ),
        ),
        examples=(
            "What's the stock value of Galaxy S24?",
            "Value of iPhone inventory",
            "How much is our Coke stock worth?",
        ),
    ),
    Operation(
        name="getProfitabilityReport",
        description="Get products with their profit margins and profitability data",
        category="products",
        examples=(
            "Which products have the highest profit margins?",
            "Show me most profitable items",
            "Products with high profitability",
            "Profitability report",
        ),
    ),
)

TRANSACTION_OPERATIONS = (
    Operation(
        name="getTotalSales",
        description="Get total sales revenue within a date range",
        category="transactions",
        parameters=(
            Parameter(name="startDate", type="string", description="Start date (YYYY-MM-DD format)"),
            Parameter(name="endDate", type="string", description="End date (YYYY-MM-DD format)"),
        ),
        examples=(
            "What are total sales for January 2024?",
            "Sales revenue this month",
            "Total sales between Jan 1 and Jan 31",
            "How much did we sell last week?",
        ),
    ),
    Operation(
        name="getRecentTransactions",
        description="Get the most recent transactions",
        category="transactions",
        parameters=(_limit(10, "transactions"),),
        examples=(
            "Show me recent transactions",
            "Latest sales",
            "Last 20 transactions",
            "Recent purchases",
        ),
    ),
    Operation(
        name="getTransactionsByLocation",
        description="Get all transactions from a specific location",
        category="transactions",
        parameters=(
            Parameter(
                name="location", type="string", required=True, description="Location name or city"
            ),
        ),
        examples=(
            "Sales in New York",
            "Transactions from London",
            "What sold in Lagos?",
            "All sales in California",
        ),
    ),
    Operation(
        name="getHighValueTransactions",
        description="Find transactions above a certain amount",
        category="transactions",
        parameters=(
            Parameter(
                name="minAmount",
                type="number",
                description="Minimum transaction amount",
                default=1000,
            ),
        ),
        examples=(
            "Show me high value transactions",
            "Transactions over $5000",
            "Big sales",
            "Large purchases above $2000",
        ),
    ),
    Operation(
        name="getTodaysTransactions",
        description="Get all transactions from today",
        category="transactions",
        examples=("Today's sales", "What sold today?", "Transactions today", "Today's revenue"),
    ),
    Operation(
        name="getWeeklySalesReport",
        description="Get a comprehensive weekly sales report",
        category="transactions",
        examples=(
            "Weekly sales report",
            "This week's performance",
            "Sales summary for the week",
            "Weekly revenue breakdown",
        ),
    ),
    Operation(
        name="getMonthlySalesReport",
        description="Get a comprehensive monthly sales report",
        category="transactions",
        examples=(
            "Monthly sales report",
            "This month's performance",
            "Sales summary for the month",
            "Monthly revenue breakdown",
        ),
    ),
    Operation(
        name="getTopRevenueProducts",
        description="Get products that generated the most revenue",
        category="transactions",
        parameters=(
            _limit(10, "products"),
            Parameter(name="days", type="number", description="Number of days to look back"),
        ),
        examples=(
            "Which products made the most money?",
            "Top revenue generating items",
            "Highest earning products",
            "Most profitable products by revenue",
        ),
    ),
)

COMPANY_OPERATIONS = (
    Operation(
        name="getAllCompanies",
        description="Get a list of all companies in the system",
        category="companies",
        examples=(
            "List all companies",
            "Show me all suppliers",
            "What companies do we work with?",
            "All business partners",
        ),
    ),
    Operation(
        name="getCompaniesByCountry",
        description="Get companies from a specific country",
        category="companies",
        parameters=(
            Parameter(name="country", type="string", required=True, description="Country name"),
        ),
        examples=(
            "Companies from USA",
            "Suppliers in China",
            "German companies",
            "All partners from Nigeria",
        ),
    ),
    Operation(
        name="getTopCompaniesByProductCount",
        description="Get companies with the most products",
        category="companies",
        parameters=(_limit(10, "companies"),),
        examples=(
            "Which companies supply the most products?",
            "Top suppliers by product count",
            "Companies with most items",
            "Biggest product suppliers",
        ),
    ),
)

CATEGORY_OPERATIONS = (
    Operation(
        name="getAllCategories",
        description="Get all product categories",
        category="categories",
        examples=(
            "List all categories",
            "What product categories exist?",
            "Show me all product types",
            "All categories",
        ),
    ),
    Operation(
        name="getCategoryProductCount",
        description="Get the number of products in each category",
        category="categories",
        examples=(
            "How many products are in each category?",
            "Product count by category",
            "Category distribution",
            "Products per category",
        ),
    ),
    Operation(
        name="getTopCategoriesByProductCount",
        description="Get categories with the most products",
        category="categories",
        parameters=(_limit(10, "categories"),),
        examples=(
            "Which categories have the most products?",
            "Top categories by product count",
            "Most popular categories",
            "Categories with most items",
        ),
    ),
)

ADMIN_OPERATIONS = (
    Operation(
        name="getAllAdmins",
        description="Get all admin users in the system",
        category="admins",
        examples=(
            "List all admins",
            "Show me all administrators",
            "Who are the admins?",
            "All admin users",
        ),
    ),
    Operation(
        name="getAdminsByRole",
        description="Get admins by their role",
        category="admins",
        parameters=(
            Parameter(
                name="role",
                type="string",
                required=True,
                description="Admin role (super_admin, admin, etc.)",
            ),
        ),
        examples=(
            "Show me super admins",
            "List all managers",
            "Who are the moderators?",
            "Admins with super_admin role",
        ),
    ),
)

DEFAULT_OPERATIONS = (
    PRODUCT_OPERATIONS
    + TRANSACTION_OPERATIONS
    + COMPANY_OPERATIONS
    + CATEGORY_OPERATIONS
    + ADMIN_OPERATIONS
)
