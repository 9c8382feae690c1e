# Storefront Services
